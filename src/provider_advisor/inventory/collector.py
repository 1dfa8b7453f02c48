"""Collects the declared inventory from state snapshots and configuration files.

Every collector except :func:`resolve_execution_dir` is best-effort: I/O and
decoding failures are logged and degrade to empty results so the advisory
cycle never blocks the provisioning run it is attached to.
"""

import json
import os
from pathlib import Path
from typing import List, Optional, Set

from pydantic import ValidationError

from provider_advisor.config.models import AdvisorConfig
from provider_advisor.inventory.models import (
    CollectedInventory,
    DeclaredAttributeSet,
    DeclaredResource,
    StateSnapshot,
)
from provider_advisor.utils.errors import (
    ConfigUnreadable,
    ErrorContext,
    ExecutionDirError,
    StateMalformed,
    StateUnreadable,
    error_handler,
)
from provider_advisor.utils.logging import get_logger

logger = get_logger(__name__)


def resolve_execution_dir(configured: Optional[str]) -> Path:
    """Resolve the directory holding state and configuration files.

    Args:
        configured: Configured execution directory; empty means the process CWD

    Returns:
        Absolute path of the execution directory

    Raises:
        ExecutionDirError: If the directory is missing, not a directory or
            cannot be listed
    """
    try:
        directory = Path(configured).expanduser() if configured else Path.cwd()
        directory = directory.resolve()
    except (OSError, RuntimeError) as e:
        raise ExecutionDirError(
            f"Cannot determine execution directory: {e}",
            context=ErrorContext(path=configured, operation="resolve_execution_dir"),
            cause=e,
        )

    context = ErrorContext(path=str(directory), operation="resolve_execution_dir")

    if not directory.exists():
        raise ExecutionDirError(
            f"Execution directory does not exist: {directory}",
            context=context,
            suggestions=["Set execution_dir in advisor.yaml or ADVISOR_EXECUTION_DIR"],
        )
    if not directory.is_dir():
        raise ExecutionDirError(f"Execution path is not a directory: {directory}", context=context)

    try:
        os.listdir(directory)
    except OSError as e:
        raise ExecutionDirError(
            f"Execution directory cannot be listed: {directory}",
            context=context,
            cause=e,
            suggestions=["Check read permissions on the execution directory"],
        )

    return directory


def load_state_snapshot(state_path: Path) -> StateSnapshot:
    """Load and decode a state snapshot.

    Args:
        state_path: Path to the state file

    Returns:
        Parsed StateSnapshot

    Raises:
        StateUnreadable: If the file cannot be opened
        StateMalformed: If the content is not a JSON state document
    """
    context = ErrorContext(path=str(state_path), operation="load_state")
    try:
        with open(state_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise StateMalformed(f"Unable to decode state file: {e}", context=context, cause=e)
    except (OSError, UnicodeDecodeError) as e:
        raise StateUnreadable(f"Unable to open state file: {e}", context=context, cause=e)

    if not isinstance(data, dict):
        raise StateMalformed("State file top level is not a JSON object", context=context)

    try:
        return StateSnapshot(**data)
    except ValidationError as e:
        raise StateMalformed(f"Unexpected state file layout: {e}", context=context, cause=e)


def collect_from_state(state_path: Path) -> List[DeclaredResource]:
    """Extract declared resources from a state snapshot.

    Only instances exposing a string ``id`` attribute are kept; duplicates by
    ``(type, id)`` are dropped. Failures degrade to an empty list.

    Args:
        state_path: Path to the state file

    Returns:
        Declared resources in snapshot order
    """
    resources = declared_resources(_load_snapshot_or_empty(state_path))
    logger.debug(f"Collected {len(resources)} declared resources from {state_path}")
    return resources


def collect_attributes_from_state(state_path: Path) -> List[DeclaredAttributeSet]:
    """Extract the full attribute map of every state instance.

    Args:
        state_path: Path to the state file

    Returns:
        Attribute maps in snapshot order (empty on failure)
    """
    return attribute_sets(_load_snapshot_or_empty(state_path))


def declared_resources(snapshot: StateSnapshot) -> List[DeclaredResource]:
    """Declared resources of a parsed snapshot (string ids only, deduplicated)."""
    resources: List[DeclaredResource] = []
    seen: Set[tuple] = set()
    for resource in snapshot.resources:
        for instance in resource.instances:
            resource_id = instance.attributes.get("id")
            if not isinstance(resource_id, str):
                continue
            declared = DeclaredResource(type=resource.type, id=resource_id)
            if declared.key() in seen:
                continue
            seen.add(declared.key())
            resources.append(declared)
    return resources


def attribute_sets(snapshot: StateSnapshot) -> List[DeclaredAttributeSet]:
    """Attribute maps of every instance of a parsed snapshot."""
    return [
        dict(instance.attributes)
        for resource in snapshot.resources
        for instance in resource.instances
    ]


def collect_raw_configuration(directory: Path, extension: str = ".tf") -> str:
    """Concatenate all declared-configuration files of a directory.

    Files are read in sorted filename order and each is followed by a newline.
    Unreadable files are logged and omitted.

    Args:
        directory: Directory to scan (not recursive)
        extension: Configuration file extension

    Returns:
        Concatenated configuration text
    """
    try:
        files = sorted(p for p in Path(directory).glob(f"*{extension}") if p.is_file())
    except OSError as e:
        error_handler.log_error(ConfigUnreadable(
            f"Unable to list configuration files: {e}",
            context=ErrorContext(path=str(directory), operation="collect_raw_configuration"),
            cause=e,
        ))
        return ""

    parts = []
    for path in files:
        try:
            parts.append(_read_text(path) + "\n")
        except ConfigUnreadable as e:
            error_handler.log_error(e)

    logger.debug(f"Read {len(parts)}/{len(files)} configuration files from {directory}")
    return "".join(parts)


def read_reference_docs(root: Path) -> str:
    """Concatenate every file of a documentation tree.

    The tree is walked in sorted order. Unreadable files are skipped and a
    missing root yields an empty string.

    Args:
        root: Root directory of the documentation tree

    Returns:
        Concatenated documentation text
    """
    root = Path(root)
    if not root.is_dir():
        logger.warning(f"Reference documentation not found at {root}")
        return ""

    parts = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for filename in sorted(filenames):
            try:
                parts.append(_read_text(Path(dirpath) / filename))
            except ConfigUnreadable as e:
                error_handler.log_error(e)

    return "".join(parts)


def collect_inventory(config: AdvisorConfig) -> CollectedInventory:
    """Gather all inputs of an advisory cycle.

    Args:
        config: Advisor configuration

    Returns:
        CollectedInventory for this cycle

    Raises:
        ExecutionDirError: If the execution directory cannot be resolved
    """
    execution_dir = resolve_execution_dir(config.execution_dir)
    state_path = execution_dir / config.state_file

    snapshot = _load_snapshot_or_empty(state_path)

    attributes = attribute_sets(snapshot)
    for attrs in attributes:
        logger.debug(f"Resource: {attrs}")

    resources = declared_resources(snapshot)
    for resource in resources:
        logger.debug(f"Resource Type: {resource.type}, ID: {resource.id}")

    docs_root = Path(config.docs_dir).expanduser()
    if not docs_root.is_absolute():
        docs_root = execution_dir / docs_root

    inventory = CollectedInventory(
        execution_dir=execution_dir,
        resources=resources,
        attributes=attributes,
        raw_configuration=collect_raw_configuration(execution_dir, config.config_extension),
        reference_docs=read_reference_docs(docs_root),
        new_features=list(config.new_features),
    )

    logger.info(
        f"Collected {inventory.resource_count()} declared resources, "
        f"{len(inventory.raw_configuration)} chars of configuration, "
        f"{len(inventory.reference_docs)} chars of reference docs"
    )
    return inventory


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigUnreadable(
            f"Unable to read {path}: {e}",
            context=ErrorContext(path=str(path), operation="read"),
            cause=e,
        )


def _load_snapshot_or_empty(state_path: Path) -> StateSnapshot:
    try:
        return load_state_snapshot(Path(state_path))
    except (StateUnreadable, StateMalformed) as e:
        error_handler.log_error(e)
        return StateSnapshot()
