"""Utility modules for logging and error handling."""

from provider_advisor.utils.errors import (
    ErrorCategory,
    ErrorSeverity,
    ErrorContext,
    AdvisorError,
    ConfigurationError,
    ExecutionDirError,
    StateUnreadable,
    StateMalformed,
    ConfigUnreadable,
    AgentCallFailed,
    AgentRefused,
    ToolInvocationFailed,
    RenderFailed,
    TaskInputError,
    ErrorHandler,
    error_handler
)
from provider_advisor.utils.logging import get_logger, setup_logging

__all__ = [
    # Errors
    'ErrorCategory',
    'ErrorSeverity',
    'ErrorContext',
    'AdvisorError',
    'ConfigurationError',
    'ExecutionDirError',
    'StateUnreadable',
    'StateMalformed',
    'ConfigUnreadable',
    'AgentCallFailed',
    'AgentRefused',
    'ToolInvocationFailed',
    'RenderFailed',
    'TaskInputError',
    'ErrorHandler',
    'error_handler',

    # Logging
    'get_logger',
    'setup_logging',
]
