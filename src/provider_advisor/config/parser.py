"""YAML configuration parser for the provider advisor."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from .models import AdvisorConfig


# Environment variables that override values from advisor.yaml
ENV_OVERRIDES = {
    "ADVISOR_EXECUTION_DIR": ("execution_dir",),
    "ADVISOR_API_ID": ("backend", "api_id"),
    "ADVISOR_API_KEY": ("backend", "api_key"),
    "ADVISOR_BASE_URL": ("backend", "base_url"),
    "ADVISOR_LLM_PROVIDER": ("agent", "provider"),
    "ADVISOR_LLM_MODEL": ("agent", "model"),
}


class ConfigValidationError(Exception):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, errors: Optional[List[Dict]] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(self.message)

    def __str__(self) -> str:
        """Format validation errors for display."""
        if not self.errors:
            return self.message

        error_lines = [self.message, ""]
        for error in self.errors:
            location = " -> ".join(str(loc) for loc in error.get("loc", []))
            msg = error.get("msg", "Unknown error")
            error_lines.append(f"  • {location}: {msg}")

        return "\n".join(error_lines)


class Config:
    """Configuration loader for the provider advisor."""

    def __init__(self, config_path: str = "advisor.yaml"):
        """Initialize configuration loader.

        Args:
            config_path: Path to advisor.yaml configuration file
        """
        self.config_path = Path(config_path)
        self.data: Dict[str, Any] = {}
        self.settings: Optional[AdvisorConfig] = None

    def load(self, environ: Optional[Dict[str, str]] = None) -> AdvisorConfig:
        """Load and validate configuration.

        A missing file is not an error: defaults are used and environment
        overrides still apply.

        Args:
            environ: Environment mapping (defaults to os.environ)

        Returns:
            Validated, immutable AdvisorConfig

        Raises:
            ConfigValidationError: If the file cannot be parsed or is invalid
        """
        if self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigValidationError(f"Failed to parse YAML: {e}")
            except OSError as e:
                raise ConfigValidationError(f"Failed to read {self.config_path}: {e}")

            if not isinstance(loaded, dict):
                raise ConfigValidationError(
                    f"Top level of {self.config_path} must be a mapping"
                )
            section = loaded.get("advisor", loaded)
            if section is None:
                section = {}
            if not isinstance(section, dict):
                raise ConfigValidationError(
                    f"The advisor section of {self.config_path} must be a mapping"
                )
            self.data = section
        else:
            self.data = {}

        self._apply_env_overrides(environ if environ is not None else os.environ)

        validation_errors = self.validate()
        if validation_errors:
            raise ConfigValidationError(
                f"Configuration validation failed with {len(validation_errors)} error(s)",
                validation_errors,
            )

        return self.settings

    def validate(self) -> List[Dict]:
        """Validate configuration against schema.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []
        try:
            self.settings = AdvisorConfig(**self.data)
        except ValidationError as e:
            for error in e.errors():
                errors.append({"loc": list(error["loc"]), "msg": error["msg"]})
        return errors

    def _apply_env_overrides(self, environ: Dict[str, str]) -> None:
        """Apply environment variable overrides to the raw data."""
        for env_name, path in ENV_OVERRIDES.items():
            value = environ.get(env_name)
            if not value:
                continue
            target = self.data
            for key in path[:-1]:
                section = target.get(key)
                if not isinstance(section, dict):
                    section = {}
                    target[key] = section
                target = section
            target[path[-1]] = value

    def to_dict(self) -> Dict:
        """Convert configuration to dictionary with secrets masked.

        Returns:
            Dictionary representation of configuration
        """
        if not self.settings:
            return {}
        data = self.settings.model_dump()
        if data["backend"].get("api_key"):
            data["backend"]["api_key"] = "****"
        return data


def load_config(config_path: str = "advisor.yaml", **overrides: Any) -> AdvisorConfig:
    """Load configuration and apply explicit overrides.

    Args:
        config_path: Path to advisor.yaml
        **overrides: Top-level field overrides (None values are ignored)

    Returns:
        Validated AdvisorConfig
    """
    config = Config(config_path)
    settings = config.load()
    updates = {key: value for key, value in overrides.items() if value is not None}
    if not updates:
        return settings
    try:
        return AdvisorConfig(**{**settings.model_dump(), **updates})
    except ValidationError as e:
        raise ConfigValidationError(
            "Invalid configuration override",
            [{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()],
        )
