"""Advisory task descriptors.

Every advisory analysis is an :class:`AdvisoryTask`: a named prompt template
plus the inputs it requires. Rendering is a pure function of those inputs.
"""

import json
from dataclasses import dataclass
from string import Template
from typing import Dict, List, Mapping, Sequence, Tuple

from provider_advisor.agentic import prompts
from provider_advisor.config.models import AdvisorConfig
from provider_advisor.inventory.models import CollectedInventory
from provider_advisor.utils.errors import ConfigurationError, ErrorContext, TaskInputError


# Extra diff-prompt rule per configured diff direction
DIRECTION_RULES = {
    "additive": "- Do not report declared resources that are missing remotely.",
    "symmetric": (
        "- After the two blocks, add the heading \"# declared locally but not found remotely:\" "
        "followed by one line \"# <resource_type> <resource_id>\" for every declared resource of a "
        "listed type that the remote account does not contain. Never output delete or destroy commands."
    ),
}


@dataclass(frozen=True)
class AdvisoryTask:
    """A stateless, templated advisory analysis."""

    name: str
    prompt_template: Template
    required_inputs: Tuple[str, ...]
    tool_augmented: bool = False
    description: str = ""

    def render(self, inputs: Mapping[str, str]) -> str:
        """Render the prompt from the task inputs.

        Args:
            inputs: Mapping of input name to text; extra keys are ignored

        Returns:
            Prompt text

        Raises:
            TaskInputError: If a required input is missing
        """
        missing = [name for name in self.required_inputs if name not in inputs]
        if missing:
            raise TaskInputError(
                f"Task '{self.name}' is missing required inputs: {', '.join(missing)}",
                context=ErrorContext(task=self.name, operation="render"),
            )
        return self.prompt_template.substitute(
            {name: str(inputs[name]) for name in self.required_inputs}
        )


INVENTORY_DIFF = AdvisoryTask(
    name="inventory-diff",
    prompt_template=prompts.INVENTORY_DIFF,
    required_inputs=("declared_resources", "page_size", "direction_rule"),
    tool_augmented=True,
    description="Remote resources missing from the configuration, with import commands",
)

GENERAL_BEST_PRACTICES = AdvisoryTask(
    name="general-best-practices",
    prompt_template=prompts.GENERAL_BEST_PRACTICES,
    required_inputs=("raw_configuration",),
    description="Security, modularity, validation, naming and cost review",
)

DEPRECATED_RESOURCE_REPLACEMENT = AdvisoryTask(
    name="deprecated-resource-replacement",
    prompt_template=prompts.DEPRECATED_RESOURCE_REPLACEMENT,
    required_inputs=("raw_configuration", "reference_docs"),
    description="Deprecated or removed resources and arguments with replacements",
)

NEW_FEATURE_ADOPTION = AdvisoryTask(
    name="new-feature-adoption",
    prompt_template=prompts.NEW_FEATURE_ADOPTION,
    required_inputs=("raw_configuration", "reference_docs", "new_features"),
    description="Newly released provider features not yet used",
)

# Canonical declaration order; reports are always aggregated in this order
CANONICAL_TASKS: Tuple[AdvisoryTask, ...] = (
    INVENTORY_DIFF,
    GENERAL_BEST_PRACTICES,
    DEPRECATED_RESOURCE_REPLACEMENT,
    NEW_FEATURE_ADOPTION,
)

TASKS_BY_NAME: Dict[str, AdvisoryTask] = {task.name: task for task in CANONICAL_TASKS}


def select_tasks(names: Sequence[str]) -> List[AdvisoryTask]:
    """Resolve task names to descriptors, keeping the given order.

    Args:
        names: Task names as configured

    Returns:
        Task descriptors

    Raises:
        ConfigurationError: If a name is unknown
    """
    unknown = [name for name in names if name not in TASKS_BY_NAME]
    if unknown:
        raise ConfigurationError(
            f"Unknown advisory task(s): {', '.join(unknown)}",
            suggestions=[f"Valid tasks: {', '.join(TASKS_BY_NAME)}"],
        )
    return [TASKS_BY_NAME[name] for name in names]


def build_task_inputs(inventory: CollectedInventory, config: AdvisorConfig) -> Dict[str, str]:
    """Build the shared input mapping for all tasks of a cycle.

    Args:
        inventory: Collected inventory
        config: Advisor configuration

    Returns:
        Mapping of input name to text
    """
    return {
        "declared_resources": json.dumps([r.to_prompt_dict() for r in inventory.resources]),
        "page_size": str(config.backend.page_size),
        "direction_rule": DIRECTION_RULES[config.diff_direction],
        "raw_configuration": inventory.raw_configuration,
        "reference_docs": inventory.reference_docs,
        "new_features": "\n".join(f"- {feature}" for feature in inventory.new_features),
    }
