from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from openai import AsyncOpenAI
from pydantic import SecretStr
from pydantic_ai.direct import model_request_sync
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelRequestPart,
    SystemPromptPart,
    TextPart,
    ToolCallPart,
    ToolReturnPart,
    UserPromptPart,
)
from pydantic_ai.messages import ModelResponse as AIModelResponse
from pydantic_ai.models import ModelRequestParameters
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.tools import ToolDefinition

from baton.llm.provider import ModelResponse, ProviderMessage, ToolSchema

if TYPE_CHECKING:
    from baton.config import Settings

logger = logging.getLogger(__name__)


class PydanticAIProvider:
    """Provider adapter implemented via a PydanticAI direct model request.

    Conversation history is converted into PydanticAI request/response
    messages, one request is issued with the tool definitions, and the
    response parts are normalized back into output items.
    """

    def __init__(
        self,
        api_key: Optional[Any] = None,
        api_base: Optional[str] = None,
        api_max_retries: int = 2,
        model_builder: Optional[Callable[[str], OpenAIChatModel]] = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            api_key: OpenAI (or LiteLLM proxy) key, plain or SecretStr.
            api_base: OpenAI-compatible base URL, e.g. a LiteLLM proxy.
            api_max_retries: Number of API retries performed by the provider SDK.
            model_builder: Optional override for building the PydanticAI model.
        """

        self._api_key = api_key
        self._api_base = api_base
        self._api_max_retries = max(0, int(api_max_retries))
        self._model_builder = model_builder

    @classmethod
    def from_settings(cls, settings: "Settings") -> "PydanticAIProvider":
        if settings.use_litellm_proxy():
            return cls(
                api_key=settings.get_litellm_proxy_api_key()
                or settings.get_openai_api_key(),
                api_base=settings.get_litellm_proxy_url(),
            )
        return cls(api_key=settings.get_openai_api_key())

    def complete(
        self,
        messages: List[ProviderMessage],
        model: str,
        tools: List[ToolSchema],
    ) -> ModelResponse:
        """Send one request and normalize the reply.

        Args:
            messages: OpenAI-style role messages.
            model: Model identifier.
            tools: OpenAI-style function tool schemas.

        Returns:
            The normalized ModelResponse.
        """

        history = to_model_messages(messages)
        parameters = ModelRequestParameters(
            function_tools=[to_tool_definition(tool) for tool in tools]
        )
        logger.info("LLM request start", extra={"model": model, "tools": len(tools)})
        response = self._request(model, history, parameters)
        logger.info("LLM request complete", extra={"model": model})
        return from_model_response(response)

    def _request(
        self,
        model: str,
        history: List[ModelMessage],
        parameters: ModelRequestParameters,
    ) -> AIModelResponse:
        """Issue the request.

        This is isolated for testability: unit tests should patch this method.
        """

        return model_request_sync(
            self._build_model(model),
            history,
            model_request_parameters=parameters,
        )

    def _build_model(self, model: str) -> OpenAIChatModel:
        """Build the PydanticAI model for a request.

        Args:
            model: Model identifier.

        Returns:
            An OpenAIChatModel configured for direct or proxy (LiteLLM) usage.
        """

        if self._model_builder is not None:
            return self._model_builder(model)

        api_key = self._resolve_api_key(self._api_key) or os.environ.get(
            "OPENAI_API_KEY"
        )
        if api_key is None:
            return OpenAIChatModel(model)

        client_kwargs: Dict[str, Any] = {
            "api_key": api_key,
            "max_retries": self._api_max_retries,
        }
        if self._api_base:
            client_kwargs["base_url"] = self._api_base

        openai_client = AsyncOpenAI(**client_kwargs)
        provider = OpenAIProvider(openai_client=openai_client)
        return OpenAIChatModel(model, provider=provider)

    @staticmethod
    def _resolve_api_key(api_key: Optional[Any]) -> Optional[str]:
        """Resolve a secret or plain API key to a string."""

        if api_key is None:
            return None
        if isinstance(api_key, SecretStr):
            return api_key.get_secret_value()
        return str(api_key)


def to_tool_definition(tool: ToolSchema) -> ToolDefinition:
    function = tool.get("function", tool)
    return ToolDefinition(
        name=function["name"],
        description=function.get("description"),
        parameters_json_schema=function.get("parameters") or {"type": "object"},
    )


def to_model_messages(messages: List[ProviderMessage]) -> List[ModelMessage]:
    """Convert OpenAI-style role messages into PydanticAI history.

    Consecutive system, user and tool messages share one ModelRequest;
    each assistant message becomes a ModelResponse.
    """

    history: List[ModelMessage] = []
    pending: List[ModelRequestPart] = []
    for message in messages:
        role = message.get("role")
        content = message.get("content") or ""
        if role == "assistant":
            if pending:
                history.append(ModelRequest(parts=pending))
                pending = []
            history.append(_assistant_response(message))
        elif role == "system":
            pending.append(SystemPromptPart(content=content))
        elif role == "tool":
            pending.append(
                ToolReturnPart(
                    tool_name=message.get("name") or "",
                    content=content,
                    tool_call_id=message.get("tool_call_id") or "",
                )
            )
        else:
            pending.append(UserPromptPart(content=content))
    if pending:
        history.append(ModelRequest(parts=pending))
    return history


def _assistant_response(message: ProviderMessage) -> AIModelResponse:
    parts: List[Any] = []
    if message.get("content"):
        parts.append(TextPart(content=message["content"]))
    for call in message.get("tool_calls") or []:
        function = call.get("function", {})
        parts.append(
            ToolCallPart(
                tool_name=function.get("name", ""),
                args=function.get("arguments") or "{}",
                tool_call_id=call.get("id", ""),
            )
        )
    return AIModelResponse(parts=parts)


def from_model_response(response: AIModelResponse) -> ModelResponse:
    """Normalize PydanticAI response parts into output items and usage."""

    output: List[Dict[str, Any]] = []
    for part in response.parts:
        if isinstance(part, TextPart):
            output.append({"type": "message", "role": "assistant", "content": part.content})
        elif isinstance(part, ToolCallPart):
            output.append(
                {
                    "type": "function_call",
                    "name": part.tool_name,
                    "arguments": part.args_as_json_str(),
                    "call_id": part.tool_call_id,
                }
            )

    usage_obj = response.usage
    usage = {
        "input_tokens": getattr(usage_obj, "input_tokens", None),
        "output_tokens": getattr(usage_obj, "output_tokens", None),
    }
    return ModelResponse.parse({"output": output, "usage": usage})
