"""Declared inventory collection from state snapshots and configuration files."""

from provider_advisor.inventory.models import (
    CollectedInventory,
    DeclaredAttributeSet,
    DeclaredResource,
)
from provider_advisor.inventory.collector import (
    collect_attributes_from_state,
    collect_from_state,
    collect_inventory,
    collect_raw_configuration,
    read_reference_docs,
    resolve_execution_dir,
)

__all__ = [
    "CollectedInventory",
    "DeclaredAttributeSet",
    "DeclaredResource",
    "collect_attributes_from_state",
    "collect_from_state",
    "collect_inventory",
    "collect_raw_configuration",
    "read_reference_docs",
    "resolve_execution_dir",
]
