"""Partitioning of provider output into messages, tool calls and handoffs."""

from dataclasses import dataclass, field
from typing import List

from baton.domain.agent import Agent
from baton.domain.handoff import HANDOFF_TOOL_PREFIX
from baton.domain.messages import Message, ToolCall
from baton.llm.provider import FunctionCallOutput, MessageOutput, ModelResponse


@dataclass(frozen=True)
class ClassifiedResponse:
    """Output items of one response grouped by kind, each in output order."""

    messages: List[MessageOutput] = field(default_factory=list)
    tool_calls: List[ToolCall] = field(default_factory=list)
    handoff_calls: List[ToolCall] = field(default_factory=list)

    @property
    def has_handoff(self) -> bool:
        return bool(self.handoff_calls)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def final_text(self) -> str:
        """Content of the last message item, empty when there is none."""

        if not self.messages:
            return ""
        return self.messages[-1].content or ""

    def assistant_message(self, agent_name: str) -> Message:
        """
        Builds the assistant message recorded for this turn.

        Only the authoritative handoff call is kept alongside ordinary tool
        calls, so every call id in the message gets exactly one result.
        """
        text = "".join(item.content or "" for item in self.messages) or None
        calls = list(self.tool_calls)
        if self.handoff_calls:
            calls.append(self.handoff_calls[0])
        return Message.assistant(content=text, tool_calls=calls, agent=agent_name)


def is_handoff_call(name: str, agent: Agent) -> bool:
    if name.startswith(HANDOFF_TOOL_PREFIX):
        return True
    return agent.find_handoff(name) is not None


def classify(response: ModelResponse, agent: Agent) -> ClassifiedResponse:
    """
    Splits a validated response for the given agent.

    Args:
        response: Parsed provider response.
        agent: The agent whose declared handoffs identify handoff calls.

    Returns:
        The classified response.
    """
    messages: List[MessageOutput] = []
    tool_calls: List[ToolCall] = []
    handoff_calls: List[ToolCall] = []
    for item in response.output:
        if isinstance(item, FunctionCallOutput):
            call = ToolCall(id=item.call_id, name=item.name, arguments=item.arguments)
            if is_handoff_call(item.name, agent):
                handoff_calls.append(call)
            else:
                tool_calls.append(call)
        else:
            messages.append(item)
    return ClassifiedResponse(
        messages=messages, tool_calls=tool_calls, handoff_calls=handoff_calls
    )
