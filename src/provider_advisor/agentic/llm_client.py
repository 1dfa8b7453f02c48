"""LLM client for advisory analysis.

Two call modes are supported: a plain prompt-to-text query and a
tool-augmented query in which the model may page through the remote
inventory before answering. Neither mode retries; failures come back as
:class:`AgentResponse` values carrying the error.
"""

import json
import os
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from provider_advisor.agentic.models import AgentResponse, ToolCallRecord
from provider_advisor.agentic.remote_inventory import (
    LIST_REMOTE_RESOURCES_DESCRIPTION,
    LIST_REMOTE_RESOURCES_PARAMETERS,
    LIST_REMOTE_RESOURCES_TOOL,
    RemoteInventoryClient,
)
from provider_advisor.config.models import AgentSettings, BackendSettings
from provider_advisor.utils.errors import (
    AdvisorError,
    AgentCallFailed,
    AgentRefused,
    ErrorContext,
    ToolInvocationFailed,
    error_handler,
)
from provider_advisor.utils.logging import get_logger

logger = get_logger(__name__)


SYSTEM_PROMPT = (
    "You are an infrastructure-as-code expert helping operators review and "
    "improve their Terraform configuration for a cloud security provider."
)

# Builds the remote listing client from the credential pair of a tool-augmented call
InventoryClientFactory = Callable[[str, str], RemoteInventoryClient]


class LLMProvider(Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    BEDROCK = "bedrock"
    LOCAL = "local"


class LLMClient:
    """Client for interacting with the reasoning agent."""

    def __init__(
        self,
        provider: LLMProvider = LLMProvider.OPENAI,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        endpoint: Optional[str] = None,
        timeout: float = 120.0,
        temperature: float = 0.3,
        max_tokens: int = 4000,
        max_tool_rounds: int = 20,
        inventory_client_factory: Optional[InventoryClientFactory] = None
    ):
        """Initialize LLM client.

        Args:
            provider: LLM provider to use
            api_key: API key (if not provided, will use environment variable)
            model: Model name (provider-specific)
            endpoint: Custom endpoint URL (OpenAI-compatible local servers)
            timeout: Per-call timeout in seconds
            temperature: Sampling temperature
            max_tokens: Maximum tokens in a completion
            max_tool_rounds: Maximum model turns in a tool-augmented call
            inventory_client_factory: Builds the remote listing client from
                a credential pair
        """
        self.provider = provider
        self.api_key = api_key or self._get_api_key_from_env()
        self.model = model or self._get_default_model()
        self.endpoint = endpoint
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_tool_rounds = max_tool_rounds
        self.inventory_client_factory = inventory_client_factory or _default_inventory_client_factory
        self.logger = get_logger(__name__)

        self.client = self._initialize_client()

    @classmethod
    def from_settings(
        cls,
        settings: AgentSettings,
        timeout: float,
        backend: Optional[BackendSettings] = None
    ) -> "LLMClient":
        """Create a client from AgentSettings and optional BackendSettings.

        Args:
            settings: AgentSettings
            timeout: Per-call timeout in seconds
            backend: Optional BackendSettings for the remote listing tool

        Returns:
            Configured LLMClient
        """
        factory = None
        if backend is not None:
            def factory(credential_id: str, credential_secret: str) -> RemoteInventoryClient:
                return RemoteInventoryClient(
                    api_id=credential_id,
                    api_key=credential_secret,
                    base_url=backend.base_url,
                    page_size=backend.page_size,
                    timeout=timeout,
                )

        return cls(
            provider=LLMProvider(settings.provider),
            model=settings.model,
            endpoint=settings.endpoint,
            timeout=timeout,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            max_tool_rounds=settings.max_tool_rounds,
            inventory_client_factory=factory,
        )

    @property
    def available(self) -> bool:
        """Check if a provider client was initialized."""
        return self.client is not None

    def _get_api_key_from_env(self) -> Optional[str]:
        """Get API key from environment variable."""
        if self.provider == LLMProvider.OPENAI:
            return os.getenv('OPENAI_API_KEY')
        elif self.provider == LLMProvider.ANTHROPIC:
            return os.getenv('ANTHROPIC_API_KEY')
        elif self.provider == LLMProvider.LOCAL:
            return os.getenv('LOCAL_LLM_API_KEY')
        return None  # Bedrock uses AWS credentials

    def _get_default_model(self) -> str:
        """Get default model for provider."""
        defaults = {
            LLMProvider.OPENAI: "gpt-4o",
            LLMProvider.ANTHROPIC: "claude-3-5-sonnet-20241022",
            LLMProvider.BEDROCK: "anthropic.claude-3-5-sonnet-20240620-v1:0",
            LLMProvider.LOCAL: "llama3.1"
        }
        return defaults.get(self.provider, "gpt-4o")

    def _initialize_client(self) -> Any:
        """Initialize provider-specific client."""
        try:
            if self.provider == LLMProvider.OPENAI:
                if not self.api_key:
                    self.logger.warning("OpenAI API key not found - agent calls will fail")
                    return None
                import openai
                return openai.OpenAI(
                    api_key=self.api_key,
                    base_url=self.endpoint,
                    timeout=self.timeout,
                    max_retries=0
                )
            elif self.provider == LLMProvider.ANTHROPIC:
                if not self.api_key:
                    self.logger.warning("Anthropic API key not found - agent calls will fail")
                    return None
                import anthropic
                return anthropic.Anthropic(
                    api_key=self.api_key,
                    timeout=self.timeout,
                    max_retries=0
                )
            elif self.provider == LLMProvider.BEDROCK:
                import boto3
                from botocore.config import Config as BotoConfig
                return boto3.client(
                    'bedrock-runtime',
                    config=BotoConfig(read_timeout=self.timeout, retries={'max_attempts': 1})
                )
            elif self.provider == LLMProvider.LOCAL:
                # Local models are served through an OpenAI-compatible endpoint (e.g. ollama)
                if not self.endpoint:
                    self.logger.warning("No endpoint configured for local LLM - agent calls will fail")
                    return None
                import openai
                return openai.OpenAI(
                    api_key=self.api_key or "local",
                    base_url=self.endpoint,
                    timeout=self.timeout,
                    max_retries=0
                )
        except ImportError as e:
            self.logger.warning(f"Failed to import LLM client library: {e}")
            return None
        except Exception as e:
            self.logger.warning(f"Failed to initialize LLM client: {e}")
            return None

    def query(self, prompt: str) -> AgentResponse:
        """Single-shot prompt to text call.

        Args:
            prompt: Prompt text

        Returns:
            AgentResponse with the answer, or an AgentCallFailed/AgentRefused error
        """
        context = ErrorContext(operation="query", provider=self.provider.value)
        if not self.client:
            return AgentResponse.failure(AgentCallFailed("LLM unavailable", context=context))

        try:
            text = self._call_llm(prompt)
        except Exception as e:
            error = error_handler.handle_exception(e, context)
            self.logger.error(f"Error calling LLM: {error.message}")
            return AgentResponse.failure(error)

        if not text or not text.strip():
            return AgentResponse.failure(AgentRefused("Agent returned an empty answer", context=context))
        return AgentResponse(text=text)

    def query_with_tools(
        self,
        prompt: str,
        credential_id: str,
        credential_secret: str
    ) -> AgentResponse:
        """Multi-turn call in which the agent may list remote resources.

        The answer is only accepted if at least one listing call succeeded;
        an answer produced without remote data is discarded rather than
        reported.

        Args:
            prompt: Prompt text
            credential_id: Backend credential id
            credential_secret: Backend credential secret

        Returns:
            AgentResponse with the final answer and the tool calls made
        """
        context = ErrorContext(operation="query_with_tools", provider=self.provider.value)
        if not self.client:
            return AgentResponse.failure(AgentCallFailed("LLM unavailable", context=context))
        if not credential_id or not credential_secret:
            return AgentResponse.failure(ToolInvocationFailed(
                "Backend credentials are not configured",
                context=context,
                suggestions=["Set backend.api_id and backend.api_key (or ADVISOR_API_ID/ADVISOR_API_KEY)"]
            ))

        inventory = self.inventory_client_factory(credential_id, credential_secret)
        records: List[ToolCallRecord] = []

        def run_tool(name: str, arguments: Any) -> Tuple[Dict[str, Any], bool]:
            return self._execute_tool(inventory, name, arguments, records)

        try:
            if self.provider in (LLMProvider.OPENAI, LLMProvider.LOCAL):
                text = self._openai_tool_loop(prompt, run_tool)
            elif self.provider == LLMProvider.ANTHROPIC:
                text = self._anthropic_tool_loop(prompt, run_tool)
            elif self.provider == LLMProvider.BEDROCK:
                text = self._bedrock_tool_loop(prompt, run_tool)
            else:
                text = ""
        except AdvisorError as e:
            return AgentResponse.failure(e, records)
        except Exception as e:
            error = error_handler.handle_exception(e, context)
            self.logger.error(f"Error in tool-augmented LLM call: {error.message}")
            return AgentResponse.failure(error, records)

        if not any(record.is_success() for record in records):
            failed = [r.error for r in records if r.error]
            message = (
                f"Remote listing failed: {failed[-1]}" if failed
                else "Agent answered without listing remote resources"
            )
            return AgentResponse.failure(ToolInvocationFailed(message, context=context), records)

        if not text or not text.strip():
            return AgentResponse.failure(
                AgentRefused("Agent returned an empty answer", context=context), records
            )

        self.logger.info(f"Tool-augmented call completed after {len(records)} tool calls")
        return AgentResponse(text=text, tool_calls=records)

    def _call_llm(self, prompt: str) -> str:
        """Call LLM with prompt.

        Args:
            prompt: Prompt text

        Returns:
            LLM response text
        """
        if self.provider in (LLMProvider.OPENAI, LLMProvider.LOCAL):
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt}
                ],
                temperature=self.temperature
            )
            return response.choices[0].message.content or ""

        elif self.provider == LLMProvider.ANTHROPIC:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                messages=[
                    {"role": "user", "content": prompt}
                ]
            )
            return _anthropic_text(response.content)

        elif self.provider == LLMProvider.BEDROCK:
            body = json.dumps({
                "anthropic_version": "bedrock-2023-05-31",
                "max_tokens": self.max_tokens,
                "system": SYSTEM_PROMPT,
                "messages": [
                    {"role": "user", "content": prompt}
                ]
            })
            response = self.client.invoke_model(
                modelId=self.model,
                body=body
            )
            response_body = json.loads(response['body'].read())
            return "".join(
                block.get('text', '') for block in response_body.get('content', [])
                if block.get('type') == 'text'
            )

        return ""

    def _openai_tool_loop(self, prompt: str, run_tool) -> str:
        """Chat-completions tool loop (OpenAI and OpenAI-compatible servers)."""
        tools = [{
            "type": "function",
            "function": {
                "name": LIST_REMOTE_RESOURCES_TOOL,
                "description": LIST_REMOTE_RESOURCES_DESCRIPTION,
                "parameters": LIST_REMOTE_RESOURCES_PARAMETERS,
            }
        }]
        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt}
        ]

        for _ in range(self.max_tool_rounds):
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                tools=tools,
                tool_choice="auto",
                temperature=self.temperature
            )
            message = response.choices[0].message
            tool_calls = message.tool_calls or []
            if not tool_calls:
                return message.content or ""

            messages.append({
                "role": "assistant",
                "content": message.content,
                "tool_calls": [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {"name": tc.function.name, "arguments": tc.function.arguments},
                    }
                    for tc in tool_calls
                ],
            })
            for tc in tool_calls:
                payload, _ = run_tool(tc.function.name, tc.function.arguments)
                messages.append({
                    "role": "tool",
                    "tool_call_id": tc.id,
                    "content": json.dumps(payload),
                })

        raise ToolInvocationFailed(f"Agent exceeded {self.max_tool_rounds} tool rounds")

    def _anthropic_tool_loop(self, prompt: str, run_tool) -> str:
        """Messages API tool-use loop."""
        tools = [{
            "name": LIST_REMOTE_RESOURCES_TOOL,
            "description": LIST_REMOTE_RESOURCES_DESCRIPTION,
            "input_schema": LIST_REMOTE_RESOURCES_PARAMETERS,
        }]
        messages: List[Dict[str, Any]] = [{"role": "user", "content": prompt}]

        for _ in range(self.max_tool_rounds):
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                tools=tools,
                messages=messages
            )
            tool_uses = [block for block in response.content if block.type == "tool_use"]
            if response.stop_reason != "tool_use" or not tool_uses:
                return _anthropic_text(response.content)

            messages.append({"role": "assistant", "content": response.content})
            results = []
            for block in tool_uses:
                payload, is_error = run_tool(block.name, block.input)
                results.append({
                    "type": "tool_result",
                    "tool_use_id": block.id,
                    "content": json.dumps(payload),
                    "is_error": is_error,
                })
            messages.append({"role": "user", "content": results})

        raise ToolInvocationFailed(f"Agent exceeded {self.max_tool_rounds} tool rounds")

    def _bedrock_tool_loop(self, prompt: str, run_tool) -> str:
        """Bedrock Converse API tool-use loop."""
        tool_config = {
            "tools": [{
                "toolSpec": {
                    "name": LIST_REMOTE_RESOURCES_TOOL,
                    "description": LIST_REMOTE_RESOURCES_DESCRIPTION,
                    "inputSchema": {"json": LIST_REMOTE_RESOURCES_PARAMETERS},
                }
            }]
        }
        messages: List[Dict[str, Any]] = [{"role": "user", "content": [{"text": prompt}]}]

        for _ in range(self.max_tool_rounds):
            response = self.client.converse(
                modelId=self.model,
                system=[{"text": SYSTEM_PROMPT}],
                messages=messages,
                toolConfig=tool_config,
                inferenceConfig={"maxTokens": self.max_tokens, "temperature": self.temperature}
            )
            message = response["output"]["message"]
            content = message.get("content", [])
            tool_uses = [block["toolUse"] for block in content if "toolUse" in block]
            if response.get("stopReason") != "tool_use" or not tool_uses:
                return "".join(block.get("text", "") for block in content)

            messages.append(message)
            results = []
            for tool_use in tool_uses:
                payload, is_error = run_tool(tool_use["name"], tool_use.get("input", {}))
                results.append({
                    "toolResult": {
                        "toolUseId": tool_use["toolUseId"],
                        "content": [{"json": payload}],
                        "status": "error" if is_error else "success",
                    }
                })
            messages.append({"role": "user", "content": results})

        raise ToolInvocationFailed(f"Agent exceeded {self.max_tool_rounds} tool rounds")

    def _execute_tool(
        self,
        inventory: RemoteInventoryClient,
        name: str,
        arguments: Any,
        records: List[ToolCallRecord]
    ) -> Tuple[Dict[str, Any], bool]:
        """Execute one tool call requested by the agent.

        Tool failures are reported back to the agent as an error payload so
        it can stop paging; they are also recorded for the caller.

        Returns:
            Tuple of (payload for the agent, whether the call failed)
        """
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments or "{}")
            except json.JSONDecodeError as e:
                error = f"Malformed tool arguments: {e}"
                records.append(ToolCallRecord(name=name, arguments={}, error=error))
                return {"error": error}, True

        recorded_args = arguments if isinstance(arguments, dict) else {"raw": arguments}

        if name != LIST_REMOTE_RESOURCES_TOOL:
            error = f"Unknown tool: {name}"
            records.append(ToolCallRecord(name=name, arguments=recorded_args, error=error))
            return {"error": error}, True

        try:
            payload = inventory.invoke_tool(arguments)
        except ToolInvocationFailed as e:
            self.logger.warning(f"Tool {name}({recorded_args}) failed: {e.message}")
            records.append(ToolCallRecord(name=name, arguments=recorded_args, error=e.message))
            return {"error": e.message}, True

        self.logger.info(
            f"Executed {name}({recorded_args}): {len(payload['resources'])} resources, "
            f"has_more={payload['has_more']}"
        )
        records.append(ToolCallRecord(name=name, arguments=recorded_args))
        return payload, False


def _anthropic_text(content) -> str:
    return "".join(getattr(block, "text", "") for block in content if getattr(block, "type", "") == "text")


def _default_inventory_client_factory(credential_id: str, credential_secret: str) -> RemoteInventoryClient:
    return RemoteInventoryClient(api_id=credential_id, api_key=credential_secret)
