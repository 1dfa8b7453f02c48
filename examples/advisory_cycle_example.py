"""Example of running advisory cycles programmatically."""

from provider_advisor.agentic import (
    LLMClient,
    LLMProvider,
    RemoteInventoryClient,
    compute_inventory_diff,
)
from provider_advisor.config import AgentSettings, BackendSettings, load_config
from provider_advisor.inventory import collect_inventory
from provider_advisor.orchestrator import AdvisoryOrchestrator, run_advisory_cycle
from provider_advisor.utils import ExecutionDirError, setup_logging


def example_full_cycle():
    """Example: Run one cycle and print the diagnostic."""
    print("=" * 60)
    print("Example 1: Full Advisory Cycle")
    print("=" * 60)

    # Reads advisor.yaml (if present) plus ADVISOR_* environment overrides
    config = load_config("advisor.yaml", execution_dir="./infra")

    try:
        payload = run_advisory_cycle(config)
    except ExecutionDirError as e:
        print(e.to_user_message())
        return

    print(f"\n{payload.severity.value.upper()}: {payload.summary}\n")
    print(payload.detail)

    if payload.failed_tasks:
        print(f"\n⚠ Tasks without output: {', '.join(payload.failed_tasks)}")


def example_custom_agent():
    """Example: Sequential cycle with a local OpenAI-compatible model."""
    print("\n" + "=" * 60)
    print("Example 2: Custom Agent")
    print("=" * 60)

    config = load_config(
        "advisor.yaml",
        execution_dir="./infra",
        concurrent=False,
        tasks=["general-best-practices", "new-feature-adoption"],
        agent=AgentSettings(provider="local", model="llama3.1", endpoint="http://localhost:11434/v1"),
    )

    llm_client = LLMClient(
        provider=LLMProvider.LOCAL,
        model=config.agent.model,
        endpoint=config.agent.endpoint,
        timeout=config.call_timeout,
    )

    orchestrator = AdvisoryOrchestrator(config, llm_client)
    report = orchestrator.run_cycle()

    for result in report.results:
        status = "✓" if result.is_success() else "✗"
        print(f"\n{status} {result.task_name} ({result.duration:.1f}s)")
        if not result.is_success():
            print(f"  {result.response.error.message}")


def example_inventory_diff():
    """Example: Compare declared and remote sites without an agent."""
    print("\n" + "=" * 60)
    print("Example 3: Deterministic Inventory Diff")
    print("=" * 60)

    config = load_config(
        "advisor.yaml",
        execution_dir="./infra",
        backend=BackendSettings(api_id="12345", api_key="your-api-key"),
    )
    inventory = collect_inventory(config)

    client = RemoteInventoryClient(
        api_id=config.backend.api_id,
        api_key=config.backend.api_key,
        base_url=config.backend.base_url,
    )
    remote = client.list_all()

    diff = compute_inventory_diff(inventory.resources, remote)
    print(f"\n{len(inventory.resources)} declared, {len(remote)} remote")
    print(diff.render_remediation() or "Configuration covers every remote site.")


if __name__ == '__main__':
    setup_logging('info', log_dir=None)

    example_full_cycle()
    example_custom_agent()
    example_inventory_diff()
