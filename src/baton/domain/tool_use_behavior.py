from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ToolUseBehaviorType(Enum):
    """Enumeration of policies applied after a batch of tool results."""

    RUN_LLM_AGAIN = "RUN_LLM_AGAIN"
    STOP_ON_FIRST_TOOL = "STOP_ON_FIRST_TOOL"
    STOP_AT_TOOLS = "STOP_AT_TOOLS"
    TOOLS_TO_FINAL_OUTPUT = "TOOLS_TO_FINAL_OUTPUT"
    CUSTOM = "CUSTOM"


class ToolUseBehavior(BaseModel):
    """Base configuration for a tool-use policy."""

    type: ToolUseBehaviorType

    model_config = ConfigDict(arbitrary_types_allowed=True)


class RunLLMAgain(ToolUseBehavior):
    """Feed tool results back to the model (the default)."""

    type: ToolUseBehaviorType = ToolUseBehaviorType.RUN_LLM_AGAIN


class StopOnFirstTool(ToolUseBehavior):
    """Finish with the first tool result of the first batch."""

    type: ToolUseBehaviorType = ToolUseBehaviorType.STOP_ON_FIRST_TOOL


class _NamedToolsBehavior(ToolUseBehavior):
    tool_names: List[str] = Field(default_factory=list)

    @field_validator("tool_names", mode="before")
    @classmethod
    def _accept_single_name(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value


class StopAtTools(_NamedToolsBehavior):
    """Finish when any call in the batch targets one of the named tools."""

    type: ToolUseBehaviorType = ToolUseBehaviorType.STOP_AT_TOOLS


class ToolsToFinalOutput(_NamedToolsBehavior):
    """Finish with a value extracted from the named tools' results."""

    type: ToolUseBehaviorType = ToolUseBehaviorType.TOOLS_TO_FINAL_OUTPUT
    extractor: Optional[Callable[..., Any]] = Field(
        default=None,
        description="Receives the matching ToolResults and returns the final value.",
    )


class CustomToolUseBehavior(ToolUseBehavior):
    """Delegate the decision to a caller-supplied function.

    The function receives (agent, calls, results, conversation) and returns a
    bool (True continues, False stops) or a mapping with continue, done and
    final_output keys. Anything else continues.
    """

    type: ToolUseBehaviorType = ToolUseBehaviorType.CUSTOM
    function: Callable[..., Any]


@dataclass(frozen=True)
class ToolUseDecision:
    """Normalized outcome of a tool-use policy."""

    should_continue: bool = True
    done: bool = False
    final_output: Any = None
    record_as_message: bool = False

    @classmethod
    def keep_going(cls) -> "ToolUseDecision":
        return cls(should_continue=True, done=False)

    @classmethod
    def finish(
        cls, final_output: Any, record_as_message: bool = False
    ) -> "ToolUseDecision":
        return cls(
            should_continue=False,
            done=True,
            final_output=final_output,
            record_as_message=record_as_message,
        )


def run_llm_again() -> RunLLMAgain:
    return RunLLMAgain()


def stop_on_first_tool() -> StopOnFirstTool:
    return StopOnFirstTool()


def stop_at_tools(*tool_names: str) -> StopAtTools:
    return StopAtTools(tool_names=list(tool_names))


def tools_to_final_output(
    *tool_names: str, extractor: Optional[Callable[..., Any]] = None
) -> ToolsToFinalOutput:
    return ToolsToFinalOutput(tool_names=list(tool_names), extractor=extractor)


def custom_behavior(function: Callable[..., Any]) -> CustomToolUseBehavior:
    return CustomToolUseBehavior(function=function)
