"""Approximate token counting for context trimming."""

import math
from typing import Optional, Sequence

from baton.domain.messages import Message

MESSAGE_OVERHEAD = 4
TOOL_CALL_OVERHEAD = 10
CONVERSATION_OVERHEAD = 3
CHARS_PER_TOKEN = 4


def estimate_text(text: Optional[str]) -> int:
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_message(message: Message) -> int:
    """
    Estimates the tokens one message costs in a request.

    Args:
        message: The message to measure.

    Returns:
        Role/formatting overhead plus content, name and tool call costs.
    """
    tokens = MESSAGE_OVERHEAD
    tokens += estimate_text(message.content)
    tokens += estimate_text(message.name)
    for call in message.tool_calls:
        tokens += TOOL_CALL_OVERHEAD
        tokens += estimate_text(call.name)
        tokens += estimate_text(call.arguments)
    return tokens


def estimate_messages(messages: Sequence[Message]) -> int:
    """Total estimate for a conversation, including reply priming."""

    return CONVERSATION_OVERHEAD + sum(estimate_message(m) for m in messages)
