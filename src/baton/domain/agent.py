from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, InstanceOf, field_validator

from baton.domain.exceptions import ConfigurationError, HandoffConstructionError
from baton.domain.guardrail import InputGuardrail, OutputGuardrail
from baton.domain.handoff import Handoff
from baton.domain.tool import BaseTool
from baton.domain.tool_use_behavior import RunLLMAgain, ToolUseBehavior


class Agent(BaseModel):
    """
    An agent definition: instructions, tools and permitted handoff targets.

    Agents are read-only while a run executes. Between runs they change only
    through add_tool, add_handoff, reset_tools and reset_handoffs.
    """

    name: str = Field(min_length=1, description="Unique agent name.")
    instructions: str = Field(default="", description="System prompt text.")
    model: Optional[str] = Field(
        default=None, description="Model id; falls back to the run's model."
    )
    tools: List[InstanceOf[BaseTool]] = Field(default_factory=list)
    handoffs: List[InstanceOf[Handoff]] = Field(
        default_factory=list,
        description="Declared handoff targets (names, Agents or Handoffs).",
    )
    max_turns: Optional[int] = Field(default=None, gt=0)
    input_guardrails: List[InstanceOf[InputGuardrail]] = Field(default_factory=list)
    output_guardrails: List[InstanceOf[OutputGuardrail]] = Field(
        default_factory=list
    )
    tool_use_behavior: InstanceOf[ToolUseBehavior] = Field(
        default_factory=RunLLMAgain
    )
    handoff_description: Optional[str] = Field(
        default=None, description="Appended to handoff tool descriptions."
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @field_validator("handoffs", mode="before")
    @classmethod
    def _normalize_handoffs(cls, value: Any) -> List[Handoff]:
        """Converts declared targets into Handoff objects."""

        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            raise HandoffConstructionError(
                f"handoffs must be a list, got {type(value).__name__}"
            )
        return [_to_handoff(target) for target in value]

    @field_validator("tools")
    @classmethod
    def _unique_tool_names(cls, value: List[BaseTool]) -> List[BaseTool]:
        names = [tool.name for tool in value]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate tool names: {', '.join(duplicates)}")
        return value

    def add_tool(self, tool: BaseTool) -> None:
        """
        Registers an additional tool on the agent.

        Args:
            tool: The tool to add.

        Raises:
            ConfigurationError: When a tool with the same name exists.
        """
        if not isinstance(tool, BaseTool):
            raise ConfigurationError(
                f"Tools must derive from BaseTool, got {type(tool).__name__}"
            )
        if any(existing.name == tool.name for existing in self.tools):
            raise ConfigurationError(f"Duplicate tool names: {tool.name}")
        self.tools.append(tool)

    def add_handoff(self, target: Any, **options: Any) -> Handoff:
        """
        Declares a new handoff target.

        Args:
            target: Target agent name, Agent, or a prepared Handoff.
            options: Handoff.for_target options (tool_name, description,
                data_contract, input_filter, on_handoff) for name/Agent targets.

        Returns:
            The Handoff that was added.

        Raises:
            HandoffConstructionError: When the target type is unsupported.
        """
        handoff = _to_handoff(target, **options)
        self.handoffs.append(handoff)
        return handoff

    def reset_tools(self) -> None:
        self.tools.clear()

    def reset_handoffs(self) -> None:
        self.handoffs.clear()

    def handoff_target_names(self) -> List[str]:
        return [handoff.target_name for handoff in self.handoffs]

    def find_handoff(self, tool_name: str) -> Optional[Handoff]:
        """Returns the declared handoff exposed under a tool name, if any."""

        for handoff in self.handoffs:
            if handoff.tool_name == tool_name:
                return handoff
        return None


def _to_handoff(target: Any, **options: Any) -> Handoff:
    """Builds a Handoff from a supported target type."""

    if isinstance(target, Handoff):
        if options:
            raise HandoffConstructionError(
                "Options cannot be combined with a prepared Handoff"
            )
        return target
    if isinstance(target, Agent):
        options.setdefault("handoff_description", target.handoff_description)
        return Handoff.for_target(target.name, **options)
    if isinstance(target, str) and target:
        return Handoff.for_target(target, **options)
    raise HandoffConstructionError(
        f"Unsupported handoff target type: {type(target).__name__}"
    )
