"""Advisory cycle orchestration."""

from provider_advisor.orchestrator.cycle import (
    AdvisoryOrchestrator,
    CyclePhase,
    run_advisory_cycle,
)

__all__ = [
    "AdvisoryOrchestrator",
    "CyclePhase",
    "run_advisory_cycle",
]
