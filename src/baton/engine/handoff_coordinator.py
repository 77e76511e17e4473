"""Resolution and execution of handoffs between agents."""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from baton.domain.agent import Agent
from baton.domain.handoff import HandoffContext, HandoffRecord, Handoff, InputFilter
from baton.domain.messages import Message, ToolCall

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class HandoffResolution:
    """Outcome of mapping a handoff call to a target agent."""

    call: ToolCall
    handoff: Optional[Handoff] = None
    target: Optional[Agent] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    reason: str = ""

    @property
    def resolved(self) -> bool:
        return self.target is not None


class HandoffCoordinator:
    """
    Resolves handoff calls and moves control between agents.

    The coordinator is the only writer of a run's HandoffContext.

    Args:
        clock: Source of handoff timestamps.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock

    def resolve(
        self, target_name: str, available_agents: Mapping[str, Agent]
    ) -> Optional[Agent]:
        """Exact, case-sensitive name lookup. Unknown names give None."""

        return available_agents.get(target_name)

    def resolve_call(
        self,
        agent: Agent,
        call: ToolCall,
        available_agents: Mapping[str, Agent],
    ) -> HandoffResolution:
        """
        Maps a handoff tool call to the declared handoff and its target.

        Args:
            agent: The agent that issued the call.
            call: The handoff call.
            available_agents: Agents of the run keyed by name.

        Returns:
            A resolution; unresolved outcomes carry a reason instead of raising.
        """
        payload = self._decode_payload(call)
        handoff = agent.find_handoff(call.name)
        if handoff is None:
            return HandoffResolution(
                call=call,
                payload=payload,
                reason=(
                    f"Handoff '{call.name}' is not declared by agent '{agent.name}'."
                ),
            )
        target = self.resolve(handoff.target_name, available_agents)
        if target is None:
            return HandoffResolution(
                call=call,
                handoff=handoff,
                payload=payload,
                reason=f"Handoff target '{handoff.target_name}' is not available.",
            )
        return HandoffResolution(
            call=call, handoff=handoff, target=target, payload=payload
        )

    def execute(
        self,
        from_agent: Agent,
        to_agent: Agent,
        payload: Dict[str, Any],
        context: HandoffContext,
        *,
        input_filter: Optional[InputFilter] = None,
        on_handoff: Optional[Callable[[Dict[str, Any]], Any]] = None,
    ) -> HandoffRecord:
        """
        Transfers control and shared data to another agent.

        Args:
            from_agent: Agent giving up control.
            to_agent: Agent receiving control.
            payload: Decoded handoff arguments.
            context: The run's handoff context.
            input_filter: Transforms the payload before it is shared.
            on_handoff: Called with the shared payload; its errors propagate.

        Returns:
            The record appended to the handoff chain.
        """
        record = HandoffRecord(
            from_agent=from_agent.name,
            to_agent=to_agent.name,
            timestamp=self._clock(),
        )
        context.record_handoff(record)

        shared = dict(payload)
        if input_filter is not None:
            shared = dict(input_filter(shared))
        context.shared_context.update(shared)
        context.current_agent = to_agent

        logger.info(
            "Handoff executed",
            extra={
                "from_agent": from_agent.name,
                "to_agent": to_agent.name,
                "chain_length": len(context.handoff_chain),
            },
        )
        if on_handoff is not None:
            on_handoff(shared)
        return record

    def build_handoff_tools(self, agent: Agent) -> List[Dict[str, Any]]:
        """Tool schemas for every handoff the agent declares."""

        return [handoff.as_openai_tool() for handoff in agent.handoffs]

    @staticmethod
    def transfer_message(call: ToolCall, target_name: str, agent_name: str) -> Message:
        return Message.tool(
            tool_call_id=call.id,
            content=json.dumps({"assistant": target_name}),
            name=call.name,
            agent=agent_name,
        )

    @staticmethod
    def failure_message(resolution: HandoffResolution, agent_name: str) -> Message:
        return Message.tool(
            tool_call_id=resolution.call.id,
            content=f"Error: {resolution.reason}",
            name=resolution.call.name,
            agent=agent_name,
        )

    @staticmethod
    def _decode_payload(call: ToolCall) -> Dict[str, Any]:
        if not call.arguments or not call.arguments.strip():
            return {}
        try:
            decoded = json.loads(call.arguments)
        except ValueError:
            logger.warning(
                "Ignoring malformed handoff payload",
                extra={"tool": call.name, "call_id": call.id},
            )
            return {}
        if not isinstance(decoded, dict):
            logger.warning(
                "Ignoring non-object handoff payload",
                extra={"tool": call.name, "call_id": call.id},
            )
            return {}
        return decoded
