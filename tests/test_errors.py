from unittest.mock import MagicMock

import anthropic
import openai
import requests
from botocore.exceptions import ClientError, NoCredentialsError

from provider_advisor.utils.errors import (
    AgentCallFailed,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    ExecutionDirError,
    StateMalformed,
    ToolInvocationFailed,
    error_handler,
)


def test_advisor_errors_pass_through():
    error = StateMalformed("bad state")

    assert error_handler.handle_exception(error) is error
    assert error.severity == ErrorSeverity.WARNING
    assert ExecutionDirError("gone").severity == ErrorSeverity.CRITICAL


def test_http_status_mapping():
    response = MagicMock(status_code=429)

    error = error_handler.handle_exception(requests.HTTPError(response=response))

    assert isinstance(error, ToolInvocationFailed)
    assert error.message == "Rate limit exceeded (HTTP 429)"
    assert error.suggestions


def test_bedrock_client_error():
    error = error_handler.handle_exception(
        ClientError(
            {"Error": {"Code": "AccessDeniedException", "Message": "model not enabled"},
             "ResponseMetadata": {"RequestId": "req-1"}},
            "Converse",
        ),
        ErrorContext(task="general-best-practices"),
    )

    assert isinstance(error, AgentCallFailed)
    assert "AccessDeniedException" in error.message
    assert error.context.request_id == "req-1"


def test_missing_aws_credentials():
    assert isinstance(error_handler.handle_exception(NoCredentialsError()), AgentCallFailed)


def test_sdk_timeouts_are_classified_by_type():
    assert "timed out" in error_handler.handle_exception(requests.Timeout("slow")).message
    assert "timed out" in error_handler.handle_exception(openai.APITimeoutError(request=MagicMock())).message
    assert "timed out" in error_handler.handle_exception(anthropic.APITimeoutError(request=MagicMock())).message


def test_sdk_connection_errors_are_network_errors():
    error = error_handler.handle_exception(openai.APIConnectionError(request=MagicMock()))

    assert "Network error" in error.message


def test_lookalike_class_names_are_not_classified():
    class ReadTimeoutConnectionError(Exception):
        pass

    error = error_handler.handle_exception(ReadTimeoutConnectionError("slow"))

    assert isinstance(error, AgentCallFailed)
    assert "timed out" not in error.message
    assert "Network error" not in error.message


def test_unknown_errors_become_agent_call_failed():
    error = error_handler.handle_exception(KeyError("choices"))

    assert isinstance(error, AgentCallFailed)
    assert error.to_dict()["type"] == "AgentCallFailed"
    assert error.to_dict()["category"] == ErrorCategory.AGENT.value
