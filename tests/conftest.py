import json
import threading
import time

import pytest

from provider_advisor.agentic.models import AgentResponse, ToolCallRecord
from provider_advisor.config.models import AdvisorConfig, BackendSettings
from provider_advisor.utils.errors import AgentCallFailed


# Distinctive phrase of each prompt, used by the fake agent to tell tasks apart
PROMPT_MARKERS = (
    ("render", "self-contained HTML5"),
    ("inventory-diff", "compare the sites"),
    ("general-best-practices", "Terraform best practices"),
    ("deprecated-resource-replacement", "provider-level correctness"),
    ("new-feature-adoption", "newly released features"),
)


def task_for_prompt(prompt):
    for task, marker in PROMPT_MARKERS:
        if marker in prompt:
            return task
    return "unknown"


class FakeLLMClient:
    """Scriptable stand-in for LLMClient.

    answers: task name -> text; defaults to "<task> answer"
    delays: task name -> seconds to sleep before answering
    failures: task names answered with an AgentCallFailed response
    raises: task names whose call raises RuntimeError
    """

    def __init__(self, answers=None, delays=None, failures=(), raises=(), available=True):
        self.answers = answers or {}
        self.delays = delays or {}
        self.failures = set(failures)
        self.raises = set(raises)
        self.available = available
        self.calls = []
        self.credentials = []
        self._lock = threading.Lock()

    def _answer(self, prompt):
        task = task_for_prompt(prompt)
        with self._lock:
            self.calls.append(task)
        time.sleep(self.delays.get(task, 0))
        if task in self.raises:
            raise RuntimeError(f"{task} exploded")
        if task in self.failures:
            return AgentResponse.failure(AgentCallFailed(f"{task} failed"))
        return AgentResponse(text=self.answers.get(task, f"{task} answer"))

    def query(self, prompt):
        return self._answer(prompt)

    def query_with_tools(self, prompt, credential_id, credential_secret):
        with self._lock:
            self.credentials.append((credential_id, credential_secret))
        response = self._answer(prompt)
        if response.ok:
            response.tool_calls = [ToolCallRecord(name="list_remote_resources", arguments={"page_num": 0})]
        return response


def write_state(path, resources):
    path.write_text(json.dumps({"version": 4, "resources": resources}))
    return path


@pytest.fixture
def execution_dir(tmp_path):
    write_state(tmp_path / "terraform.tfstate", [
        {
            "type": "incapsula_site_v3",
            "instances": [
                {"attributes": {"id": "42", "name": "example.com"}},
                {"attributes": {"name": "no-id"}},
            ],
        },
    ])
    (tmp_path / "main.tf").write_text('resource "incapsula_site_v3" "example" {\n  name = "example.com"\n}\n')
    (tmp_path / "provider.tf").write_text('provider "incapsula" {}\n')
    docs = tmp_path / "website" / "docs"
    docs.mkdir(parents=True)
    (docs / "site_v3.md").write_text("# incapsula_site_v3\n")
    return tmp_path


@pytest.fixture
def config(execution_dir):
    return AdvisorConfig(
        execution_dir=str(execution_dir),
        call_timeout=5,
        backend=BackendSettings(api_id="1234", api_key="secret"),
    )


@pytest.fixture
def fake_llm():
    return FakeLLMClient()
