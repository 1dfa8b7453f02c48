import pytest

from provider_advisor.agentic.models import AdvisoryReport, AgentResponse, TaskResult
from provider_advisor.report.emitter import (
    DiagnosticSeverity,
    ReportEmitter,
    emit,
    extract_html,
    render,
)
from provider_advisor.utils.errors import AgentCallFailed

from conftest import FakeLLMClient


def make_report(*texts):
    return AdvisoryReport(results=[
        TaskResult(task_name=f"task-{i}", slot=i, response=AgentResponse(text=text))
        for i, text in enumerate(texts)
    ])


@pytest.mark.parametrize("text", [
    "",
    "x" * 5_000_000,
    'resource "a" "b" { name = "${var.x}" }\n\t<script>alert(1)</script> % {} \\ \x00 ☃ \U0001F916',
    None,
])
def test_emit_never_raises(text):
    payload = emit(text)

    assert payload.severity == DiagnosticSeverity.WARNING
    assert payload.summary == "Best Practice Suggestion"
    assert payload.detail == (text or "")


def test_emit_report_carries_failed_tasks():
    report = AdvisoryReport(results=[
        TaskResult(task_name="a", slot=0, response=AgentResponse(text="first")),
        TaskResult(task_name="b", slot=1, response=AgentResponse.failure(AgentCallFailed("boom"))),
        TaskResult(task_name="c", slot=2, response=AgentResponse(text="third")),
    ])

    payload = emit(report)

    assert payload.detail == "first\n\nthird"
    assert payload.failed_tasks == ["b"]
    assert payload.link is None


def test_render_writes_html_and_links_it(tmp_path):
    llm = FakeLLMClient(answers={"render": "```html\n<html><body>ok</body></html>\n```"})

    payload = render(make_report("use variables"), llm, tmp_path)

    html_file = tmp_path / "llm_suggestion.html"
    assert html_file.read_text() == "<html><body>ok</body></html>"
    assert payload.severity == DiagnosticSeverity.WARNING
    assert payload.link.startswith("file://")
    assert payload.detail.endswith(payload.link)
    assert llm.calls == ["render"]


def test_render_falls_back_when_agent_fails(tmp_path):
    llm = FakeLLMClient(failures={"render"})

    payload = render(make_report("use variables"), llm, tmp_path)

    assert payload.detail == "use variables"
    assert payload.link is None
    assert not (tmp_path / "llm_suggestion.html").exists()


def test_render_falls_back_on_non_html_answer(tmp_path):
    llm = FakeLLMClient(answers={"render": "Sorry, I cannot help with that."})

    payload = render(make_report("use variables"), llm, tmp_path)

    assert payload.detail == "use variables"


def test_render_falls_back_when_file_cannot_be_written(tmp_path):
    llm = FakeLLMClient(answers={"render": "<html></html>"})

    payload = ReportEmitter().render(make_report("use variables"), llm, tmp_path / "missing")

    assert payload.detail == "use variables"
    assert payload.link is None


def test_extract_html():
    assert extract_html("  <html></html>\n") == "<html></html>"
    assert extract_html("```\n<html></html>\n```") == "<html></html>"


def test_render_falls_back_when_client_raises(tmp_path):
    llm = FakeLLMClient(raises={"render"})

    payload = ReportEmitter().render(make_report("use variables"), llm, tmp_path)

    assert payload.detail == "use variables"
    assert payload.link is None
    assert llm.calls == ["render"]
