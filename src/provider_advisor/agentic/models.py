"""Data models for the advisory engine."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from provider_advisor.utils.errors import AdvisorError


class DiffDirection(Enum):
    """Which side of the inventory comparison is reported."""
    ADDITIVE = "additive"  # Remote resources missing from local declarations
    SYMMETRIC = "symmetric"  # Additionally report local resources missing remotely


class RemoteResource(BaseModel):
    """A resource returned by the remote listing capability."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(..., description="Resource type the remote object maps to")
    id: str = Field(..., description="Remote resource ID")
    name: str = Field("", description="Human-readable remote name")

    def key(self) -> tuple:
        """Identity of the resource for set comparisons."""
        return (self.type, self.id)


class RemotePage(BaseModel):
    """One page of the remote listing."""

    page_num: int = Field(..., ge=0)
    page_size: int = Field(..., ge=1)
    resources: List[RemoteResource] = Field(default_factory=list)

    @property
    def has_more(self) -> bool:
        """A full page means another page may follow."""
        return len(self.resources) >= self.page_size

    def to_tool_payload(self) -> Dict[str, Any]:
        """Serialize as the JSON payload handed back to the agent."""
        return {
            "page_num": self.page_num,
            "page_size": self.page_size,
            "has_more": self.has_more,
            "resources": [r.model_dump() for r in self.resources],
        }


@dataclass
class ToolCallRecord:
    """One tool invocation made by the agent during a tool-augmented call."""

    name: str
    arguments: Dict[str, Any]
    error: Optional[str] = None

    def is_success(self) -> bool:
        """Check if the invocation succeeded."""
        return self.error is None


@dataclass
class AgentResponse:
    """Result of one reasoning-agent call.

    A failed call carries an empty text and the recorded error; it is a value,
    never raised, so sibling tasks are unaffected.
    """

    text: str = ""
    error: Optional[AdvisorError] = None
    tool_calls: List[ToolCallRecord] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Check if the call succeeded."""
        return self.error is None

    @classmethod
    def failure(cls, error: AdvisorError, tool_calls: Optional[List[ToolCallRecord]] = None) -> "AgentResponse":
        """Build a failed response."""
        return cls(text="", error=error, tool_calls=tool_calls or [])


@dataclass
class TaskResult:
    """Outcome of one advisory task in a cycle."""

    task_name: str
    slot: int
    response: AgentResponse
    duration: float = 0.0  # seconds

    @property
    def text(self) -> str:
        """Text contribution to the report (empty on failure)."""
        return self.response.text if self.response.ok else ""

    def is_success(self) -> bool:
        """Check if the task succeeded."""
        return self.response.ok


@dataclass
class AdvisoryReport:
    """Aggregated advisory output in canonical task order."""

    results: List[TaskResult] = field(default_factory=list)
    separator: str = "\n"
    generated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def body(self) -> str:
        """Task texts joined by the separator, failed tasks as empty segments."""
        return self.separator.join(result.text for result in self.results)

    @property
    def failed_tasks(self) -> List[str]:
        """Names of tasks that failed."""
        return [r.task_name for r in self.results if not r.is_success()]

    def has_failures(self) -> bool:
        """Check if any task failed."""
        return len(self.failed_tasks) > 0

    def get_result(self, task_name: str) -> Optional[TaskResult]:
        """Get the result of a task by name."""
        for result in self.results:
            if result.task_name == task_name:
                return result
        return None
