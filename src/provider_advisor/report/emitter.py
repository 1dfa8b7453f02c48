"""Diagnostic payload emission and optional HTML rendering."""

import re
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from provider_advisor.agentic import prompts
from provider_advisor.agentic.models import AdvisoryReport
from provider_advisor.utils.errors import ErrorContext, RenderFailed, error_handler
from provider_advisor.utils.logging import get_logger

logger = get_logger(__name__)


SUMMARY = "Best Practice Suggestion"
OUTPUT_FILENAME = "llm_suggestion.html"

ROBOT_BANNER = r"""
      [Robot AI Assistant]
        _____
       | . . |
       |  ^  |
       | '-' |
       +-----+
      /|     |\
     /_|_____|_\
       /  |  \
      (   |   )
       \_/ \_/
 you can find MY recommendations in the following link: """

_CODE_FENCE = re.compile(r"^\s*```[a-zA-Z]*\s*\n(.*?)\n\s*```\s*$", re.DOTALL)


class DiagnosticSeverity(Enum):
    """Severity of a diagnostic shown to the operator."""
    WARNING = "warning"
    ERROR = "error"


class DiagnosticPayload(BaseModel):
    """Non-fatal diagnostic attached to the configure step."""

    severity: DiagnosticSeverity = DiagnosticSeverity.WARNING
    summary: str = SUMMARY
    detail: str = ""
    link: Optional[str] = Field(None, description="file:// URL of the rendered report")
    failed_tasks: List[str] = Field(default_factory=list)


class ReportEmitter:
    """Turns an advisory report into a diagnostic payload."""

    def __init__(self, output_filename: str = OUTPUT_FILENAME):
        """Initialize report emitter.

        Args:
            output_filename: File name of the rendered HTML report
        """
        self.output_filename = output_filename
        self.logger = get_logger(__name__)

    def emit(self, report: Union[AdvisoryReport, str, None]) -> DiagnosticPayload:
        """Wrap the aggregated text as a warning diagnostic.

        Never raises: whatever the report contains, a payload is returned.

        Args:
            report: AdvisoryReport or already aggregated text

        Returns:
            DiagnosticPayload with WARNING severity
        """
        try:
            if isinstance(report, AdvisoryReport):
                return DiagnosticPayload(detail=report.body, failed_tasks=report.failed_tasks)
            return DiagnosticPayload(detail="" if report is None else str(report))
        except Exception as e:
            self.logger.error(f"Failed to build diagnostic payload: {e}")
            return DiagnosticPayload(detail="")

    def render(
        self,
        report: AdvisoryReport,
        llm_client,
        execution_dir: Path
    ) -> DiagnosticPayload:
        """Reformat the report as an HTML document and link to it.

        Falls back to :meth:`emit` when rendering fails.

        Args:
            report: Aggregated advisory report
            llm_client: Client exposing ``query(prompt) -> AgentResponse``
            execution_dir: Directory the HTML file is written to

        Returns:
            DiagnosticPayload whose detail is the banner plus a file:// link
        """
        try:
            path = self._render_to_file(report, llm_client, Path(execution_dir))
        except RenderFailed as e:
            error_handler.log_error(e)
            return self.emit(report)

        link = path.resolve().as_uri()
        self.logger.info(f"Rendered advisory report to {path}")
        return DiagnosticPayload(
            detail=ROBOT_BANNER + link,
            link=link,
            failed_tasks=report.failed_tasks,
        )

    def _render_to_file(self, report: AdvisoryReport, llm_client, execution_dir: Path) -> Path:
        context = ErrorContext(operation="render", path=str(execution_dir / self.output_filename))

        try:
            response = llm_client.query(prompts.RENDER_HTML.substitute(report_text=report.body))
        except Exception as e:
            error = error_handler.handle_exception(e, context)
            raise RenderFailed(
                f"Agent could not render the report: {error.message}", context=context, cause=e
            )
        if not response.ok:
            raise RenderFailed(
                f"Agent could not render the report: {response.error.message}",
                context=context,
                cause=response.error,
            )

        html = extract_html(response.text)
        if "<html" not in html.lower():
            raise RenderFailed("Agent answer is not an HTML document", context=context)

        path = execution_dir / self.output_filename
        try:
            path.write_text(html, encoding="utf-8")
        except OSError as e:
            raise RenderFailed(f"Failed to write {path}: {e}", context=context, cause=e)
        return path


def extract_html(text: str) -> str:
    """Strip a surrounding markdown code fence, if any."""
    match = _CODE_FENCE.match(text)
    return match.group(1).strip() if match else text.strip()


_default_emitter = ReportEmitter()


def emit(report: Union[AdvisoryReport, str, None]) -> DiagnosticPayload:
    """Emit a report with the default emitter."""
    return _default_emitter.emit(report)


def render(report: AdvisoryReport, llm_client, execution_dir: Path) -> DiagnosticPayload:
    """Render a report with the default emitter."""
    return _default_emitter.render(report, llm_client, execution_dir)
