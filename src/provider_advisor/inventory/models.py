"""Declared inventory data models."""

from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


# Full attribute map of one state instance
DeclaredAttributeSet = Dict[str, Any]


class DeclaredResource(BaseModel):
    """A resource declared locally, identified by type and remote id."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(..., description="Resource type (e.g., incapsula_site_v3)")
    id: str = Field(..., description="Remote resource ID")

    def key(self) -> tuple:
        """Identity of the resource for set comparisons."""
        return (self.type, self.id)

    def to_prompt_dict(self) -> Dict[str, str]:
        """Serialize as the inline {type, id} pair used in prompts."""
        return {"type": self.type, "id": self.id}


class StateInstance(BaseModel):
    """A single instance entry of a state snapshot resource."""

    attributes: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("attributes", mode="before")
    @classmethod
    def default_attributes(cls, v: Any) -> Any:
        """Treat null attributes as an empty map."""
        return {} if v is None else v


class StateResource(BaseModel):
    """A resource entry of a state snapshot."""

    type: str = ""
    instances: List[StateInstance] = Field(default_factory=list)

    @field_validator("instances", mode="before")
    @classmethod
    def default_instances(cls, v: Any) -> Any:
        """Treat null instances as an empty list and drop malformed entries."""
        if v is None:
            return []
        if not isinstance(v, list):
            return v
        return [instance for instance in v if _is_instance_entry(instance)]


class StateSnapshot(BaseModel):
    """The subset of a persisted state snapshot the advisor reads."""

    resources: List[StateResource] = Field(default_factory=list)

    @field_validator("resources", mode="before")
    @classmethod
    def default_resources(cls, v: Any) -> Any:
        """Treat null resources as an empty list and drop malformed entries."""
        if v is None:
            return []
        if not isinstance(v, list):
            return v
        return [resource for resource in v if _is_resource_entry(resource)]


def _is_instance_entry(entry: Any) -> bool:
    if not isinstance(entry, dict):
        return False
    attributes = entry.get("attributes")
    return attributes is None or isinstance(attributes, dict)


def _is_resource_entry(entry: Any) -> bool:
    return (
        isinstance(entry, dict)
        and isinstance(entry.get("type", ""), str)
        and (entry.get("instances") is None or isinstance(entry["instances"], list))
    )


class CollectedInventory(BaseModel):
    """Everything the advisory tasks need, gathered once per cycle."""

    model_config = ConfigDict(frozen=True)

    execution_dir: Path
    resources: List[DeclaredResource] = Field(default_factory=list)
    attributes: List[DeclaredAttributeSet] = Field(default_factory=list)
    raw_configuration: str = ""
    reference_docs: str = ""
    new_features: List[str] = Field(default_factory=list)

    def resource_count(self) -> int:
        """Number of declared resources."""
        return len(self.resources)

    def find(self, resource_type: str, resource_id: str) -> Optional[DeclaredResource]:
        """Find a declared resource by type and id."""
        for resource in self.resources:
            if resource.type == resource_type and resource.id == resource_id:
                return resource
        return None
