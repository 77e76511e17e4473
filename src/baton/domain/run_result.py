from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from baton.domain.agent import Agent
from baton.domain.handoff import HandoffRecord
from baton.domain.messages import Message, Role
from baton.domain.step import StepResult
from baton.domain.usage import Usage


@dataclass(frozen=True)
class RunResult:
    """Outcome of a completed run."""

    messages: Tuple[Message, ...]
    last_agent: Agent
    usage: Usage
    turns: int
    final_output: Any = None
    handoff_chain: Tuple[HandoffRecord, ...] = ()
    shared_context: Dict[str, Any] = field(default_factory=dict)
    tool_usage: Dict[str, List[str]] = field(default_factory=dict)
    step_results: Tuple[StepResult, ...] = ()

    @property
    def final_text(self) -> str:
        if self.final_output is None:
            return ""
        return str(self.final_output)

    def last_assistant_message(self) -> Optional[Message]:
        for message in reversed(self.messages):
            if message.role == Role.ASSISTANT and message.content:
                return message
        return None
