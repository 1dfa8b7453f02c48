"""Advisory cycle orchestration with sequential or concurrent task dispatch."""

import time
from concurrent.futures import ALL_COMPLETED, Future, ThreadPoolExecutor, wait
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional

from provider_advisor.agentic.diff import run_local_inventory_diff
from provider_advisor.agentic.llm_client import LLMClient
from provider_advisor.agentic.models import AdvisoryReport, AgentResponse, DiffDirection, TaskResult
from provider_advisor.agentic.remote_inventory import RemoteInventoryClient
from provider_advisor.agentic.tasks import AdvisoryTask, build_task_inputs, select_tasks
from provider_advisor.config.models import AdvisorConfig
from provider_advisor.inventory.collector import collect_inventory
from provider_advisor.inventory.models import CollectedInventory
from provider_advisor.report.emitter import DiagnosticPayload, ReportEmitter
from provider_advisor.utils.errors import (
    AdvisorError,
    AgentCallFailed,
    ErrorContext,
    ExecutionDirError,
    ToolInvocationFailed,
    error_handler,
)
from provider_advisor.utils.logging import get_logger

logger = get_logger(__name__)


class CyclePhase(Enum):
    """Phase of an advisory cycle."""
    IDLE = "idle"
    COLLECTING = "collecting"
    DISPATCHING = "dispatching"
    AGGREGATING = "aggregating"
    DONE = "done"
    ABORTED = "aborted"


# Builds the remote listing client from (api_id, api_key)
RemoteClientFactory = Callable[[str, str], RemoteInventoryClient]


class AdvisoryOrchestrator:
    """Runs one advisory cycle: collect, dispatch, aggregate.

    Task failures never abort the cycle or cancel sibling tasks; a failed
    task contributes an empty segment to the report. Only an unresolvable
    execution directory aborts, before anything is dispatched.
    """

    def __init__(
        self,
        config: AdvisorConfig,
        llm_client=None,
        remote_client_factory: Optional[RemoteClientFactory] = None
    ):
        """Initialize advisory orchestrator.

        Args:
            config: Advisor configuration
            llm_client: Reasoning agent client (built from config if omitted)
            remote_client_factory: Optional factory for the remote listing
                client used by the local inventory diff
        """
        self.config = config
        self.llm_client = llm_client or LLMClient.from_settings(
            config.agent, config.call_timeout, config.backend
        )
        self.remote_client_factory = remote_client_factory or self._default_remote_client
        self.tasks: List[AdvisoryTask] = select_tasks(config.tasks)
        self.phase = CyclePhase.IDLE
        self.phase_history: List[CyclePhase] = []
        self.inventory: Optional[CollectedInventory] = None

    @property
    def execution_dir(self) -> Optional[Path]:
        """Execution directory of the last collected inventory."""
        return self.inventory.execution_dir if self.inventory else None

    def run_cycle(self) -> AdvisoryReport:
        """Run one full advisory cycle.

        Returns:
            AdvisoryReport in configured task order

        Raises:
            ExecutionDirError: If the execution directory cannot be resolved
        """
        self._enter(CyclePhase.COLLECTING)
        try:
            self.inventory = collect_inventory(self.config)
        except ExecutionDirError:
            self._enter(CyclePhase.ABORTED)
            raise

        self._enter(CyclePhase.DISPATCHING)
        inputs = build_task_inputs(self.inventory, self.config)
        start_time = time.monotonic()
        if self.config.concurrent:
            results = self._dispatch_concurrent(inputs)
        else:
            results = self._dispatch_sequential(inputs)

        self._enter(CyclePhase.AGGREGATING)
        report = self.aggregate(results)

        failed = report.failed_tasks
        if failed:
            logger.warning(
                f"Advisory cycle finished with {len(failed)} failed task(s): {', '.join(failed)}"
            )
        logger.info(
            f"Advisory cycle completed in {time.monotonic() - start_time:.1f}s "
            f"({len(results) - len(failed)}/{len(results)} tasks succeeded)"
        )

        self._enter(CyclePhase.DONE)
        return report

    def aggregate(self, results: List[Optional[TaskResult]]) -> AdvisoryReport:
        """Assemble slot results in configured task order.

        Args:
            results: One entry per task slot

        Returns:
            AdvisoryReport
        """
        ordered = []
        for slot, task in enumerate(self.tasks):
            result = results[slot] if slot < len(results) else None
            if result is None:
                result = TaskResult(
                    task_name=task.name,
                    slot=slot,
                    response=AgentResponse.failure(AgentCallFailed(
                        "Task produced no result",
                        context=ErrorContext(task=task.name, operation="aggregate")
                    ))
                )
            ordered.append(result)
        return AdvisoryReport(results=ordered, separator=self.config.report_separator)

    def _dispatch_sequential(self, inputs: Dict[str, str]) -> List[Optional[TaskResult]]:
        """Run tasks one after another."""
        return [self._run_task(slot, task, inputs) for slot, task in enumerate(self.tasks)]

    def _dispatch_concurrent(self, inputs: Dict[str, str]) -> List[Optional[TaskResult]]:
        """Run all tasks at once, waiting for every one up to the call timeout."""
        slots: List[Optional[TaskResult]] = [None] * len(self.tasks)
        executor = ThreadPoolExecutor(max_workers=len(self.tasks), thread_name_prefix="advisor-task")

        try:
            future_to_slot: Dict[Future, int] = {
                executor.submit(self._run_task, slot, task, inputs): slot
                for slot, task in enumerate(self.tasks)
            }
            done, not_done = wait(
                future_to_slot,
                timeout=self.config.call_timeout,
                return_when=ALL_COMPLETED
            )

            for future in done:
                slot = future_to_slot[future]
                task = self.tasks[slot]
                try:
                    slots[slot] = future.result()
                except Exception as e:
                    logger.error(f"Unexpected error in task {task.name}: {e}", extra={"task": task.name})
                    slots[slot] = self._failed_result(slot, task, e)

            for future in not_done:
                slot = future_to_slot[future]
                task = self.tasks[slot]
                future.cancel()
                logger.warning(
                    f"Task {task.name} did not finish within {self.config.call_timeout:g}s",
                    extra={"task": task.name}
                )
                slots[slot] = TaskResult(
                    task_name=task.name,
                    slot=slot,
                    response=AgentResponse.failure(AgentCallFailed(
                        f"Call timed out after {self.config.call_timeout:g}s",
                        context=ErrorContext(task=task.name, operation="dispatch")
                    )),
                    duration=self.config.call_timeout
                )
        finally:
            executor.shutdown(wait=False)

        return slots

    def _run_task(self, slot: int, task: AdvisoryTask, inputs: Dict[str, str]) -> TaskResult:
        """Run a single task; every failure becomes a failed result."""
        start_time = time.monotonic()
        logger.debug(f"Starting task {task.name}", extra={"task": task.name})

        try:
            prompt = task.render(inputs)
            if task.tool_augmented:
                response = self._run_inventory_diff(prompt)
            else:
                response = self.llm_client.query(prompt)
        except AdvisorError as e:
            response = AgentResponse.failure(e)
        except Exception as e:
            response = AgentResponse.failure(
                error_handler.handle_exception(e, ErrorContext(task=task.name, operation="dispatch"))
            )

        duration = time.monotonic() - start_time
        if response.ok:
            logger.info(
                f"Task {task.name} completed in {duration:.1f}s",
                extra={"task": task.name, "duration": duration}
            )
        else:
            logger.warning(
                f"Task {task.name} failed: {response.error.message}",
                extra={"task": task.name, "duration": duration}
            )
        return TaskResult(task_name=task.name, slot=slot, response=response, duration=duration)

    def _run_inventory_diff(self, prompt: str) -> AgentResponse:
        """Tool-augmented diff, or the deterministic diff without an agent."""
        backend = self.config.backend
        if getattr(self.llm_client, "available", True):
            return self.llm_client.query_with_tools(prompt, backend.api_id or "", backend.api_key or "")

        if not backend.has_credentials():
            return AgentResponse.failure(ToolInvocationFailed(
                "Backend credentials are not configured",
                context=ErrorContext(task="inventory-diff", operation="list_remote_resources"),
                suggestions=["Set backend.api_id and backend.api_key (or ADVISOR_API_ID/ADVISOR_API_KEY)"]
            ))

        logger.info("LLM unavailable, computing inventory diff locally", extra={"task": "inventory-diff"})
        return run_local_inventory_diff(
            self.inventory.resources,
            self.remote_client_factory(backend.api_id, backend.api_key),
            DiffDirection(self.config.diff_direction),
        )

    def _failed_result(self, slot: int, task: AdvisoryTask, error: Exception) -> TaskResult:
        return TaskResult(
            task_name=task.name,
            slot=slot,
            response=AgentResponse.failure(
                error_handler.handle_exception(error, ErrorContext(task=task.name, operation="dispatch"))
            )
        )

    def _default_remote_client(self, api_id: str, api_key: str) -> RemoteInventoryClient:
        backend = self.config.backend
        return RemoteInventoryClient(
            api_id=api_id,
            api_key=api_key,
            base_url=backend.base_url,
            page_size=backend.page_size,
            timeout=self.config.call_timeout,
        )

    def _enter(self, phase: CyclePhase) -> None:
        self.phase = phase
        self.phase_history.append(phase)
        logger.debug(f"Advisory cycle phase: {phase.value}")


def run_advisory_cycle(
    config: AdvisorConfig,
    llm_client=None,
    emitter: Optional[ReportEmitter] = None
) -> DiagnosticPayload:
    """Run one advisory cycle and produce the diagnostic payload.

    Args:
        config: Advisor configuration
        llm_client: Optional reasoning agent client
        emitter: Optional report emitter

    Returns:
        DiagnosticPayload with WARNING severity

    Raises:
        ExecutionDirError: If the execution directory cannot be resolved
    """
    orchestrator = AdvisoryOrchestrator(config, llm_client)
    report = orchestrator.run_cycle()

    emitter = emitter or ReportEmitter()
    if config.render_html:
        return emitter.render(report, orchestrator.llm_client, orchestrator.execution_dir)
    return emitter.emit(report)
