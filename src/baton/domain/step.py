"""Per-step outcomes produced by the step executor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Tuple, Union

from baton.domain.messages import Message

if TYPE_CHECKING:
    from baton.domain.agent import Agent
    from baton.llm.provider import ModelResponse


@dataclass(frozen=True)
class NextStepRunAgain:
    """Call the provider again with the same agent."""


@dataclass(frozen=True)
class NextStepHandoff:
    """Control moves to target_agent for the next step."""

    target_agent: "Agent"


@dataclass(frozen=True)
class NextStepFinalOutput:
    """The run is finished with output."""

    output: Any


NextStep = Union[NextStepRunAgain, NextStepHandoff, NextStepFinalOutput]


@dataclass(frozen=True)
class StepResult:
    """
    Everything one step produced.

    pre_step_items holds the items generated before this step; new_step_items
    holds what this step appended. Together they are the full generated
    history at the end of the step.
    """

    original_input: Tuple[Message, ...]
    model_response: "ModelResponse"
    pre_step_items: Tuple[Message, ...]
    new_step_items: Tuple[Message, ...]
    next_step: NextStep

    @property
    def generated_items(self) -> List[Message]:
        return list(self.pre_step_items) + list(self.new_step_items)

    @property
    def is_final(self) -> bool:
        return isinstance(self.next_step, NextStepFinalOutput)
