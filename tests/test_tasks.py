import json

import pytest

from provider_advisor.agentic.tasks import (
    CANONICAL_TASKS,
    DIRECTION_RULES,
    GENERAL_BEST_PRACTICES,
    INVENTORY_DIFF,
    NEW_FEATURE_ADOPTION,
    build_task_inputs,
    select_tasks,
)
from provider_advisor.config.models import AdvisorConfig
from provider_advisor.inventory.collector import collect_inventory
from provider_advisor.utils.errors import ConfigurationError, TaskInputError


def test_canonical_task_order():
    assert [t.name for t in CANONICAL_TASKS] == [
        "inventory-diff",
        "general-best-practices",
        "deprecated-resource-replacement",
        "new-feature-adoption",
    ]
    assert [t.name for t in CANONICAL_TASKS if t.tool_augmented] == ["inventory-diff"]


def test_render_substitutes_inputs():
    prompt = GENERAL_BEST_PRACTICES.render({"raw_configuration": 'resource "x" "y" {}'})

    assert prompt.rstrip().endswith('resource "x" "y" {}')
    assert "$raw_configuration" not in prompt


def test_render_is_pure():
    inputs = {"raw_configuration": "a", "reference_docs": "b", "new_features": "- c"}

    assert NEW_FEATURE_ADOPTION.render(inputs) == NEW_FEATURE_ADOPTION.render(dict(inputs))


def test_render_keeps_dollar_signs_in_inputs():
    prompt = GENERAL_BEST_PRACTICES.render({"raw_configuration": 'name = "${var.site}"'})

    assert '"${var.site}"' in prompt


def test_render_missing_input_raises():
    with pytest.raises(TaskInputError, match="reference_docs"):
        NEW_FEATURE_ADOPTION.render({"raw_configuration": "", "new_features": ""})


def test_select_tasks_keeps_configured_order():
    tasks = select_tasks(["new-feature-adoption", "inventory-diff"])

    assert [t.name for t in tasks] == ["new-feature-adoption", "inventory-diff"]


def test_select_unknown_task_raises():
    with pytest.raises(ConfigurationError, match="cost-review"):
        select_tasks(["inventory-diff", "cost-review"])


def test_build_task_inputs(config):
    inventory = collect_inventory(config)

    inputs = build_task_inputs(inventory, config)

    assert json.loads(inputs["declared_resources"]) == [{"type": "incapsula_site_v3", "id": "42"}]
    assert inputs["page_size"] == "100"
    assert inputs["new_features"] == "- site level managed certificate"
    assert inputs["direction_rule"] == DIRECTION_RULES["additive"]
    for task in CANONICAL_TASKS:
        task.render(inputs)


def test_diff_prompt_lists_declared_resources_and_page_size(config):
    inventory = collect_inventory(config)
    symmetric = AdvisorConfig(**{**config.model_dump(), "diff_direction": "symmetric"})

    prompt = INVENTORY_DIFF.render(build_task_inputs(inventory, symmetric))

    assert '{"type": "incapsula_site_v3", "id": "42"}' in prompt
    assert "page_size 100" in prompt
    assert "# declared locally but not found remotely:" in prompt
