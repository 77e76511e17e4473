"""Tests for the PydanticAI-backed provider adapter."""

from __future__ import annotations

import json

import pytest
from pydantic import SecretStr
from pydantic_ai.messages import (
    ModelRequest,
    SystemPromptPart,
    TextPart,
    ToolCallPart,
    ToolReturnPart,
    UserPromptPart,
)
from pydantic_ai.messages import ModelResponse as AIModelResponse
from pydantic_ai.usage import RequestUsage

from baton.config import Settings
from baton.llm.provider import FunctionCallOutput, MessageOutput
from baton.llm.pydantic_ai_provider import (
    PydanticAIProvider,
    to_model_messages,
    to_tool_definition,
)

WEATHER_TOOL = {
    "type": "function",
    "function": {
        "name": "weather",
        "description": "Look up the weather.",
        "parameters": {"type": "object", "properties": {"city": {"type": "string"}}},
    },
}


def test_complete_normalizes_parts(monkeypatch: pytest.MonkeyPatch) -> None:
    """Text and tool-call parts become ordered output items with usage."""
    provider = PydanticAIProvider(api_key="test-key")
    captured = {}

    def fake_request(model, history, parameters):
        captured.update(model=model, history=history, parameters=parameters)
        return AIModelResponse(
            parts=[
                TextPart(content="Checking."),
                ToolCallPart(
                    tool_name="weather", args={"city": "Oslo"}, tool_call_id="c1"
                ),
            ],
            usage=RequestUsage(input_tokens=11, output_tokens=4),
        )

    monkeypatch.setattr(provider, "_request", fake_request)

    response = provider.complete(
        [{"role": "user", "content": "Weather in Oslo?"}], "gpt-4o", [WEATHER_TOOL]
    )

    message, call = response.output
    assert isinstance(message, MessageOutput)
    assert message.content == "Checking."
    assert isinstance(call, FunctionCallOutput)
    assert call.call_id == "c1"
    assert json.loads(call.arguments) == {"city": "Oslo"}
    assert response.usage.total_tokens == 15
    assert captured["model"] == "gpt-4o"
    assert [t.name for t in captured["parameters"].function_tools] == ["weather"]


def test_to_model_messages_groups_requests() -> None:
    history = to_model_messages(
        [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Weather?"},
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": "c1",
                        "type": "function",
                        "function": {"name": "weather", "arguments": "{}"},
                    }
                ],
            },
            {"role": "tool", "content": "Sunny", "tool_call_id": "c1", "name": "weather"},
            {"role": "user", "content": "Thanks"},
        ]
    )

    first, reply, second = history
    assert isinstance(first, ModelRequest)
    assert [type(p) for p in first.parts] == [SystemPromptPart, UserPromptPart]
    assert isinstance(reply, AIModelResponse)
    assert isinstance(reply.parts[0], ToolCallPart)
    assert reply.parts[0].tool_call_id == "c1"
    assert [type(p) for p in second.parts] == [ToolReturnPart, UserPromptPart]
    assert second.parts[0].tool_name == "weather"


def test_to_tool_definition_defaults_parameters() -> None:
    definition = to_tool_definition({"function": {"name": "ping"}})

    assert definition.name == "ping"
    assert definition.parameters_json_schema == {"type": "object"}


def test_from_settings_direct_mode() -> None:
    settings = Settings(openai_api_key="sk-direct")

    provider = PydanticAIProvider.from_settings(settings)

    assert provider._api_key == "sk-direct"
    assert provider._api_base is None


def test_from_settings_proxy_mode() -> None:
    settings = Settings(
        openai_api_key="sk-direct",
        litellm_use_proxy=True,
        litellm_proxy_url="https://proxy.local",
        litellm_proxy_api_key="proxy-key",
    )

    provider = PydanticAIProvider.from_settings(settings)

    assert provider._api_key == "proxy-key"
    assert provider._api_base == "https://proxy.local"


def test_build_model_uses_model_builder() -> None:
    sentinel = object()
    provider = PydanticAIProvider(model_builder=lambda model: sentinel)

    assert provider._build_model("gpt-4o") is sentinel


def test_build_model_proxy_branch(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = {}

    def fake_async_openai(**kwargs):
        captured["client"] = kwargs
        return "client"

    def fake_provider(openai_client):
        captured["openai_client"] = openai_client
        return "provider"

    def fake_model(model, provider=None):
        captured["model"] = (model, provider)
        return "model"

    monkeypatch.setattr("baton.llm.pydantic_ai_provider.AsyncOpenAI", fake_async_openai)
    monkeypatch.setattr("baton.llm.pydantic_ai_provider.OpenAIProvider", fake_provider)
    monkeypatch.setattr("baton.llm.pydantic_ai_provider.OpenAIChatModel", fake_model)

    provider = PydanticAIProvider(
        api_key=SecretStr("secret"), api_base="https://proxy.local"
    )

    assert provider._build_model("gpt-4o") == "model"
    assert captured["client"] == {
        "api_key": "secret",
        "max_retries": 2,
        "base_url": "https://proxy.local",
    }
    assert captured["model"] == ("gpt-4o", "provider")
