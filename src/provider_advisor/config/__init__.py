"""Configuration management for the provider advisor."""

from .models import AdvisorConfig, AgentSettings, BackendSettings, DEFAULT_TASKS
from .parser import Config, ConfigValidationError, load_config

__all__ = [
    "AdvisorConfig",
    "AgentSettings",
    "BackendSettings",
    "DEFAULT_TASKS",
    "Config",
    "ConfigValidationError",
    "load_config",
]
