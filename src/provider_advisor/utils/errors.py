"""Error handling framework for advisory operations."""

from typing import Optional, Dict, Any, List
from enum import Enum
from dataclasses import dataclass

import requests
from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    PartialCredentialsError,
    ReadTimeoutError,
)

from provider_advisor.utils.logging import get_logger

logger = get_logger(__name__)


class ErrorCategory(Enum):
    """Categories of errors that can occur during an advisory cycle."""
    CONFIGURATION = "configuration"
    STATE = "state"
    COLLECTION = "collection"
    AGENT = "agent"
    TOOL = "tool"
    RENDER = "render"
    NETWORK = "network"
    CREDENTIAL = "credential"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""
    CRITICAL = "critical"  # Cycle cannot continue
    ERROR = "error"  # Task failed but cycle can continue
    WARNING = "warning"  # Non-fatal issue, degraded result
    INFO = "info"  # Informational message


@dataclass
class ErrorContext:
    """Context information for an error."""
    task: Optional[str] = None
    path: Optional[str] = None
    operation: Optional[str] = None
    provider: Optional[str] = None
    request_id: Optional[str] = None
    additional_info: Optional[Dict[str, Any]] = None


class AdvisorError(Exception):
    """Base exception for advisory errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None
    ):
        """Initialize advisory error.

        Args:
            message: Human-readable error message
            category: Error category
            severity: Error severity
            context: Additional context about the error
            cause: Original exception that caused this error
            suggestions: List of suggested fixes
        """
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.cause = cause
        self.suggestions = suggestions or []

    def to_user_message(self) -> str:
        """Convert error to user-friendly message.

        Returns:
            Formatted error message for display to user
        """
        lines = []

        lines.append(f"❌ {self.severity.value.upper()}: {self.message}")

        if self.context.task:
            lines.append(f"   Task: {self.context.task}")
        if self.context.path:
            lines.append(f"   Path: {self.context.path}")
        if self.context.operation:
            lines.append(f"   Operation: {self.context.operation}")

        if self.cause:
            lines.append(f"   Cause: {str(self.cause)}")

        if self.suggestions:
            lines.append("\n💡 Suggested fixes:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"   {i}. {suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error
        """
        return {
            'type': type(self).__name__,
            'message': self.message,
            'category': self.category.value,
            'severity': self.severity.value,
            'context': {
                'task': self.context.task,
                'path': self.context.path,
                'operation': self.context.operation,
                'provider': self.context.provider,
                'request_id': self.context.request_id,
                'additional_info': self.context.additional_info
            },
            'cause': str(self.cause) if self.cause else None,
            'suggestions': self.suggestions
        }


class ConfigurationError(AdvisorError):
    """Error in configuration file or settings."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class ExecutionDirError(AdvisorError):
    """Execution directory cannot be resolved; aborts the advisory cycle."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.CRITICAL,
            **kwargs
        )


class StateUnreadable(AdvisorError):
    """State snapshot cannot be opened."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.STATE,
            severity=ErrorSeverity.WARNING,
            **kwargs
        )


class StateMalformed(AdvisorError):
    """State snapshot is not valid JSON."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.STATE,
            severity=ErrorSeverity.WARNING,
            **kwargs
        )


class ConfigUnreadable(AdvisorError):
    """A declared-configuration or documentation file cannot be read."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.COLLECTION,
            severity=ErrorSeverity.WARNING,
            **kwargs
        )


class AgentCallFailed(AdvisorError):
    """Transport or service level failure of a reasoning agent call."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.AGENT,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class AgentRefused(AdvisorError):
    """The reasoning agent produced no usable answer."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.AGENT,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class ToolInvocationFailed(AdvisorError):
    """A tool call made by the agent failed or was malformed."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.TOOL,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class RenderFailed(AdvisorError):
    """The styled report document could not be produced."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.RENDER,
            severity=ErrorSeverity.WARNING,
            **kwargs
        )


class TaskInputError(AdvisorError):
    """An advisory task was rendered without one of its required inputs."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.ERROR,
            **kwargs
        )


class ErrorHandler:
    """Handles and categorizes errors from SDKs, HTTP and other sources."""

    # HTTP status codes from the agent service or backend and what they mean
    HTTP_STATUS_MAPPING = {
        401: {
            'category': ErrorCategory.CREDENTIAL,
            'message': 'Credentials were rejected',
            'suggestions': [
                'Check the api_id/api_key pair configured for the backend',
                'Verify the LLM provider API key is set and not expired'
            ]
        },
        403: {
            'category': ErrorCategory.CREDENTIAL,
            'message': 'Access denied - insufficient permissions',
            'suggestions': [
                'Verify the API key has read access to the account resources'
            ]
        },
        429: {
            'category': ErrorCategory.NETWORK,
            'message': 'Rate limit exceeded',
            'suggestions': [
                'Run the advisory cycle again later',
                'Switch to sequential dispatch to reduce concurrent calls'
            ]
        },
        500: {
            'category': ErrorCategory.NETWORK,
            'message': 'Remote service error',
            'suggestions': [
                'Run the advisory cycle again later'
            ]
        },
        503: {
            'category': ErrorCategory.NETWORK,
            'message': 'Remote service temporarily unavailable',
            'suggestions': [
                'Wait a few moments and run the cycle again'
            ]
        }
    }

    def __init__(self):
        """Initialize error handler."""
        self.logger = get_logger(__name__)

    def handle_exception(
        self,
        error: Exception,
        context: Optional[ErrorContext] = None
    ) -> AdvisorError:
        """Handle an exception raised during an agent or backend call.

        Args:
            error: The exception to handle
            context: Additional context about where the error occurred

        Returns:
            AdvisorError with categorization and suggestions
        """
        context = context or ErrorContext()

        if isinstance(error, AdvisorError):
            return error

        if isinstance(error, requests.HTTPError):
            return self._handle_http_error(error, context)

        if isinstance(error, ClientError):
            return self._handle_aws_error(error, context)

        if isinstance(error, (NoCredentialsError, PartialCredentialsError)):
            return AgentCallFailed(
                message=f'No usable AWS credentials for Bedrock: {error}',
                context=context,
                cause=error,
                suggestions=['Configure AWS credentials or choose another LLM provider']
            )

        if isinstance(error, (requests.Timeout, TimeoutError)) or _is_timeout(error):
            return AgentCallFailed(
                message=f'Call timed out: {error}',
                context=context,
                cause=error,
                suggestions=['Increase call_timeout in advisor.yaml']
            )

        if isinstance(error, (requests.ConnectionError, ConnectionError)) or _is_connection_error(error):
            return AgentCallFailed(
                message=f'Network error: {error}',
                context=context,
                cause=error,
                suggestions=[
                    'Check your internet connection',
                    'Check if VPN or proxy is interfering'
                ]
            )

        return AgentCallFailed(
            message=str(error) or type(error).__name__,
            context=context,
            cause=error,
            suggestions=['Check logs for more details']
        )

    def _handle_http_error(
        self,
        error: requests.HTTPError,
        context: ErrorContext
    ) -> AdvisorError:
        """Handle an HTTP error response from the backend."""
        status = error.response.status_code if error.response is not None else None
        error_info = self.HTTP_STATUS_MAPPING.get(status)

        if error_info:
            return ToolInvocationFailed(
                message=f"{error_info['message']} (HTTP {status})",
                context=context,
                cause=error,
                suggestions=error_info['suggestions']
            )

        return ToolInvocationFailed(
            message=f"HTTP error {status}: {error}",
            context=context,
            cause=error
        )

    def _handle_aws_error(
        self,
        error: ClientError,
        context: ErrorContext
    ) -> AdvisorError:
        """Handle a Bedrock ClientError."""
        error_code = error.response.get('Error', {}).get('Code', 'Unknown')
        error_message = error.response.get('Error', {}).get('Message', str(error))
        context.request_id = error.response.get('ResponseMetadata', {}).get('RequestId')

        return AgentCallFailed(
            message=f"Bedrock error ({error_code}): {error_message}",
            context=context,
            cause=error,
            suggestions=[
                'Check that the model is enabled for your account and region',
                f'AWS Request ID: {context.request_id}'
            ]
        )

    def log_error(self, error: AdvisorError):
        """Log an error with appropriate level.

        Args:
            error: The error to log
        """
        log_message = error.to_user_message()

        if error.severity in (ErrorSeverity.CRITICAL, ErrorSeverity.ERROR):
            self.logger.error(log_message)
        elif error.severity == ErrorSeverity.WARNING:
            self.logger.warning(log_message)
        else:
            self.logger.info(log_message)

        self.logger.debug(f"Error details: {error.to_dict()}")


def _is_timeout(error: Exception) -> bool:
    import anthropic
    import openai
    return isinstance(
        error,
        (openai.APITimeoutError, anthropic.APITimeoutError, ReadTimeoutError, ConnectTimeoutError)
    )


def _is_connection_error(error: Exception) -> bool:
    import anthropic
    import openai
    return isinstance(
        error,
        (openai.APIConnectionError, anthropic.APIConnectionError, EndpointConnectionError)
    )


# Global error handler instance
error_handler = ErrorHandler()
