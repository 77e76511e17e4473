"""Tests for conversation messages and usage records."""

from baton.domain.messages import Message, Role, ToolCall
from baton.domain.usage import Usage


def test_assistant_message_renders_tool_calls() -> None:
    """Assistant messages carry tool calls in the OpenAI shape."""
    call = ToolCall(id="c1", name="lookup", arguments='{"q": "x"}')
    message = Message.assistant(content=None, tool_calls=[call], agent="Primary")

    rendered = message.to_provider_dict()

    assert rendered["role"] == "assistant"
    assert rendered["content"] is None
    assert rendered["tool_calls"] == [
        {
            "id": "c1",
            "type": "function",
            "function": {"name": "lookup", "arguments": '{"q": "x"}'},
        }
    ]
    assert "agent" not in rendered


def test_tool_message_renders_call_id_and_name() -> None:
    message = Message.tool(tool_call_id="c1", content="ok", name="lookup")

    rendered = message.to_provider_dict()

    assert rendered == {
        "role": "tool",
        "content": "ok",
        "tool_call_id": "c1",
        "name": "lookup",
    }


def test_tool_call_generates_unique_ids() -> None:
    first = ToolCall(name="a")
    second = ToolCall(name="a")

    assert first.id != second.id
    assert first.id.startswith("call_")
    assert first.arguments == "{}"


def test_truncation_notice_detection() -> None:
    notice = Message.system(
        "[Note: 3 earlier messages were truncated to fit the context window.]"
    )
    summary = Message.system("[Summary of 3 earlier messages: greetings]")

    assert notice.is_truncation_notice
    assert summary.is_truncation_notice
    assert not Message.system("You are helpful.").is_truncation_notice
    assert not Message.user("[Note: not a notice]").is_truncation_notice


def test_message_accepts_role_strings() -> None:
    message = Message.model_validate({"role": "user", "content": "hi"})

    assert message.role == Role.USER


def test_usage_fills_missing_total() -> None:
    usage = Usage(input_tokens=10, output_tokens=5)

    assert usage.total_tokens == 15


def test_usage_ignores_none_values() -> None:
    usage = Usage.model_validate(
        {"input_tokens": None, "output_tokens": 4, "total_tokens": None}
    )

    assert usage.input_tokens == 0
    assert usage.total_tokens == 4


def test_usage_add_sums_fields() -> None:
    total = Usage(total_tokens=50).add(Usage(input_tokens=70, output_tokens=5))

    assert total.total_tokens == 125
    assert total.input_tokens == 70
    assert total.output_tokens == 5
