"""Deterministic inventory diff used when no reasoning agent is available."""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from provider_advisor.agentic.models import AgentResponse, DiffDirection, RemoteResource, ToolCallRecord
from provider_advisor.agentic.remote_inventory import LIST_REMOTE_RESOURCES_TOOL, RemoteInventoryClient
from provider_advisor.inventory.models import DeclaredResource
from provider_advisor.utils.errors import ToolInvocationFailed
from provider_advisor.utils.logging import get_logger

logger = get_logger(__name__)


_INVALID_LABEL_CHARS = re.compile(r"[^A-Za-z0-9_-]")


@dataclass
class InventoryDiff:
    """Difference between declared and remote inventories."""

    missing_locally: List[RemoteResource] = field(default_factory=list)
    missing_remotely: List[DeclaredResource] = field(default_factory=list)

    def is_empty(self) -> bool:
        """Check if both sides agree."""
        return not self.missing_locally and not self.missing_remotely

    def render_remediation(self) -> str:
        """Render the declaration and import blocks.

        Resources missing locally get a declaration snippet and an import
        command. Resources missing remotely are listed as comments only.

        Returns:
            Remediation text, empty when there is nothing to report
        """
        sections = []

        if self.missing_locally:
            labels = _unique_labels(self.missing_locally)
            declarations = [
                f'resource "{r.type}" "{label}" {{ name = "{_hcl_escape(r.name or r.id)}" }}'
                for r, label in zip(self.missing_locally, labels)
            ]
            imports = [
                f"terraform import {r.type}.{label} {r.id}"
                for r, label in zip(self.missing_locally, labels)
            ]
            sections.append("add these resources to your configuration:\n" + "\n".join(declarations))
            sections.append("run this import commands\n" + "\n".join(imports))

        if self.missing_remotely:
            lines = [f"# {r.type} {r.id}" for r in self.missing_remotely]
            sections.append("# declared locally but not found remotely:\n" + "\n".join(lines))

        return "\n\n".join(sections)


def compute_inventory_diff(
    local: Iterable[DeclaredResource],
    remote: Iterable[RemoteResource],
    direction: DiffDirection = DiffDirection.ADDITIVE,
    listed_types: Optional[Set[str]] = None
) -> InventoryDiff:
    """Compare declared and remote inventories by (type, id).

    Args:
        local: Declared resources
        remote: Remote resources
        direction: ADDITIVE reports only remote resources missing locally;
            SYMMETRIC also reports declared resources missing remotely
        listed_types: Resource types the remote listing covers; declared
            resources of other types are never reported as missing remotely.
            Defaults to the types present in ``remote``.

    Returns:
        InventoryDiff
    """
    local = list(local)
    remote = list(remote)
    local_keys = {r.key() for r in local}
    remote_keys = {r.key() for r in remote}

    missing_locally = []
    seen: Set[tuple] = set()
    for resource in remote:
        if resource.key() in local_keys or resource.key() in seen:
            continue
        seen.add(resource.key())
        missing_locally.append(resource)

    missing_remotely = []
    if direction == DiffDirection.SYMMETRIC:
        types = listed_types if listed_types is not None else {r.type for r in remote}
        missing_remotely = [
            r for r in local
            if r.type in types and r.key() not in remote_keys
        ]

    return InventoryDiff(missing_locally=missing_locally, missing_remotely=missing_remotely)


def run_local_inventory_diff(
    local: List[DeclaredResource],
    remote_client: RemoteInventoryClient,
    direction: DiffDirection = DiffDirection.ADDITIVE
) -> AgentResponse:
    """Page through the remote listing and diff it without a reasoning agent.

    A listing failure yields a failed response with empty text: nothing is
    reported rather than a guessed difference.

    Args:
        local: Declared resources
        remote_client: Remote listing client
        direction: Diff direction

    Returns:
        AgentResponse carrying the remediation text
    """
    record = ToolCallRecord(
        name=LIST_REMOTE_RESOURCES_TOOL,
        arguments={"page_size": remote_client.page_size}
    )
    try:
        remote = remote_client.list_all()
    except ToolInvocationFailed as e:
        record.error = e.message
        return AgentResponse.failure(e, [record])

    diff = compute_inventory_diff(
        local,
        remote,
        direction=direction,
        listed_types={remote_client.resource_type}
    )
    logger.info(
        f"Local inventory diff: {len(remote)} remote, {len(local)} declared, "
        f"{len(diff.missing_locally)} missing locally, {len(diff.missing_remotely)} missing remotely"
    )
    return AgentResponse(text=diff.render_remediation(), tool_calls=[record])


def sanitize_label(name: str) -> str:
    """Turn a remote name into a valid resource label."""
    label = _INVALID_LABEL_CHARS.sub("_", name.strip()) or "resource"
    if not (label[0].isalpha() or label[0] == "_"):
        label = f"_{label}"
    return label


def _unique_labels(resources: List[RemoteResource]) -> List[str]:
    labels = []
    used: Set[str] = set()
    for resource in resources:
        base = sanitize_label(resource.name or resource.id)
        label = base
        if label in used:
            base = f"{base}_{sanitize_label(resource.id).lstrip('_')}"
            label = base
            counter = 2
            while label in used:
                label = f"{base}_{counter}"
                counter += 1
        used.add(label)
        labels.append(label)
    return labels


def _hcl_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')
