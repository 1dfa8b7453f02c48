"""Pydantic models for advisor configuration schema."""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_TASKS = [
    "inventory-diff",
    "general-best-practices",
    "deprecated-resource-replacement",
    "new-feature-adoption",
]


class AgentSettings(BaseModel):
    """Reasoning agent (LLM provider) settings."""

    model_config = ConfigDict(frozen=True)

    provider: str = Field("openai", pattern="^(openai|anthropic|bedrock|local)$")
    model: Optional[str] = Field(None, description="Provider-specific model name")
    endpoint: Optional[str] = Field(None, description="Custom endpoint URL (local models)")
    max_tool_rounds: int = Field(20, ge=1, le=100)
    temperature: float = Field(0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(4000, ge=256, le=64000)


class BackendSettings(BaseModel):
    """Remote backend API settings used by the remote listing capability."""

    model_config = ConfigDict(frozen=True)

    api_id: Optional[str] = Field(None, description="Backend API id (credential id)")
    api_key: Optional[str] = Field(None, repr=False, description="Backend API key (credential secret)")
    base_url: str = Field("https://my.incapsula.com/api/prov/v1", min_length=1)
    page_size: int = Field(100, ge=1, le=100)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate base URL scheme and strip trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must start with http:// or https://: {v}")
        return v.rstrip("/")

    def has_credentials(self) -> bool:
        """Check if both credential parts are present."""
        return bool(self.api_id) and bool(self.api_key)


class AdvisorConfig(BaseModel):
    """Immutable configuration for one advisory cycle."""

    model_config = ConfigDict(frozen=True)

    execution_dir: str = Field("", description="Directory holding state and configuration files")
    state_file: str = Field("terraform.tfstate", min_length=1)
    config_extension: str = Field(".tf", min_length=2)
    docs_dir: str = Field("website", description="Root of the reference documentation tree")
    new_features: List[str] = Field(
        default_factory=lambda: ["site level managed certificate"],
        description="Recently released provider features"
    )
    tasks: List[str] = Field(default_factory=lambda: list(DEFAULT_TASKS))
    concurrent: bool = True
    call_timeout: float = Field(120.0, gt=0, le=3600)
    diff_direction: str = Field("additive", pattern="^(additive|symmetric)$")
    render_html: bool = False
    report_separator: str = "\n"
    agent: AgentSettings = Field(default_factory=AgentSettings)
    backend: BackendSettings = Field(default_factory=BackendSettings)

    @field_validator("config_extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        """Validate configuration file extension."""
        if not v.startswith("."):
            raise ValueError(f"config_extension must start with a dot: {v}")
        return v

    @field_validator("tasks")
    @classmethod
    def validate_tasks(cls, v: List[str]) -> List[str]:
        """Validate task list is non-empty and has no duplicates."""
        if not v:
            raise ValueError("At least one advisory task must be enabled")
        seen = set()
        for name in v:
            if name in seen:
                raise ValueError(f"Duplicate advisory task: {name}")
            seen.add(name)
        return v

    @field_validator("new_features")
    @classmethod
    def validate_new_features(cls, v: List[str]) -> List[str]:
        """Drop blank feature entries."""
        return [feature.strip() for feature in v if feature and feature.strip()]
