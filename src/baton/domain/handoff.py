"""Handoff declarations and the per-run handoff context."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

if TYPE_CHECKING:
    from baton.domain.agent import Agent

HANDOFF_TOOL_PREFIX = "transfer_to_"

RECOMMENDED_PROMPT_PREFIX = (
    "# System context\n"
    "You are part of a multi-agent system designed to make agent coordination "
    "and execution easy. It uses two primary abstractions: **Agents** and "
    "**Handoffs**. An agent encompasses instructions and tools and can hand off "
    "a conversation to another agent when appropriate. Handoffs are achieved by "
    "calling a handoff function, generally named `transfer_to_<agent_name>`. "
    "Transfers between agents are handled seamlessly in the background; do not "
    "mention or draw attention to these transfers in your conversation with the "
    "user."
)

DEFAULT_HANDOFF_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "data": {
            "type": "object",
            "description": "Structured information for the receiving agent.",
        },
        "reason": {
            "type": "string",
            "description": "Why control is being transferred.",
        },
    },
    "required": [],
}

InputFilter = Callable[[Dict[str, Any]], Dict[str, Any]]
HandoffHook = Callable[[Dict[str, Any]], Any]


def snake_case(name: str) -> str:
    """Convert an agent name into a tool-name-safe snake_case identifier.

    Examples:
        ResearchAgent -> research_agent
        XMLParserAgent -> xml_parser_agent
        Customer Service Agent -> customer_service_agent
    """

    text = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name.strip())
    text = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", text)
    text = re.sub(r"[^A-Za-z0-9]+", "_", text)
    return text.strip("_").lower()


def default_tool_name(target_name: str) -> str:
    return f"{HANDOFF_TOOL_PREFIX}{snake_case(target_name)}"


def default_tool_description(
    target_name: str, handoff_description: Optional[str] = None
) -> str:
    description = f"Handoff to the {target_name} agent to handle the request."
    if handoff_description:
        description = f"{description} {handoff_description}"
    return description


def prompt_with_handoff_instructions(prompt: Optional[str]) -> str:
    """Prefix agent instructions with the recommended handoff system context."""

    if not prompt:
        return RECOMMENDED_PROMPT_PREFIX
    return f"{RECOMMENDED_PROMPT_PREFIX}\n\n{prompt}"


@dataclass
class Handoff:
    """A declared handoff target for an agent.

    The data contract is descriptive: it is advertised to the model as the
    tool's parameter schema and never enforced on the payload.
    """

    target_name: str
    tool_name: str
    description: str
    data_contract: Optional[Dict[str, Any]] = None
    input_filter: Optional[InputFilter] = None
    on_handoff: Optional[HandoffHook] = None

    @classmethod
    def for_target(
        cls,
        target_name: str,
        *,
        tool_name: Optional[str] = None,
        description: Optional[str] = None,
        handoff_description: Optional[str] = None,
        data_contract: Optional[Dict[str, Any]] = None,
        input_filter: Optional[InputFilter] = None,
        on_handoff: Optional[HandoffHook] = None,
    ) -> "Handoff":
        return cls(
            target_name=target_name,
            tool_name=tool_name or default_tool_name(target_name),
            description=description
            or default_tool_description(target_name, handoff_description),
            data_contract=data_contract,
            input_filter=input_filter,
            on_handoff=on_handoff,
        )

    def parameters_schema(self) -> Dict[str, Any]:
        if self.data_contract is None:
            return dict(DEFAULT_HANDOFF_SCHEMA)
        return dict(self.data_contract)

    def as_openai_tool(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.tool_name,
                "description": self.description,
                "parameters": self.parameters_schema(),
            },
        }


@dataclass(frozen=True)
class HandoffRecord:
    """One entry of the handoff chain."""

    from_agent: str
    to_agent: str
    timestamp: datetime


@dataclass
class HandoffContext:
    """State shared across agents for the lifetime of one run.

    Only the handoff coordinator mutates this object. The chain is
    append-only and exposed as a tuple.
    """

    current_agent: "Agent"
    shared_context: Dict[str, Any] = field(default_factory=dict)
    _chain: List[HandoffRecord] = field(default_factory=list, repr=False)

    @property
    def handoff_chain(self) -> Tuple[HandoffRecord, ...]:
        return tuple(self._chain)

    def record_handoff(self, record: HandoffRecord) -> None:
        self._chain.append(record)

    def agent_path(self) -> List[str]:
        """Names of every agent that held control, in order."""

        if not self._chain:
            return [self.current_agent.name]
        return [self._chain[0].from_agent] + [record.to_agent for record in self._chain]
