"""Agent-driven advisory tasks, remote inventory listing and orchestration."""

from provider_advisor.agentic.llm_client import LLMClient, LLMProvider
from provider_advisor.agentic.models import (
    AdvisoryReport,
    AgentResponse,
    DiffDirection,
    RemotePage,
    RemoteResource,
    TaskResult,
    ToolCallRecord,
)
from provider_advisor.agentic.remote_inventory import RemoteInventoryClient
from provider_advisor.agentic.diff import InventoryDiff, compute_inventory_diff, run_local_inventory_diff
from provider_advisor.agentic.tasks import AdvisoryTask, CANONICAL_TASKS, TASKS_BY_NAME, select_tasks

__all__ = [
    "LLMClient",
    "LLMProvider",
    "AdvisoryReport",
    "AgentResponse",
    "DiffDirection",
    "RemotePage",
    "RemoteResource",
    "TaskResult",
    "ToolCallRecord",
    "RemoteInventoryClient",
    "InventoryDiff",
    "compute_inventory_diff",
    "run_local_inventory_diff",
    "AdvisoryTask",
    "CANONICAL_TASKS",
    "TASKS_BY_NAME",
    "select_tasks",
]
