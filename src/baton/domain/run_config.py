from typing import TYPE_CHECKING, Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, InstanceOf

from baton.domain.context_config import ContextConfig, max_tokens_for_model
from baton.domain.guardrail import InputGuardrail, OutputGuardrail

if TYPE_CHECKING:
    from baton.config import Settings


class RunConfig(BaseModel):
    """
    Options for one run.

    Guardrails listed here run in addition to the starting agent's own.
    """

    model: Optional[str] = Field(
        default=None, description="Model used by agents that do not name one."
    )
    max_turns: Optional[int] = Field(
        default=None,
        gt=0,
        description="Turn budget; falls back to the starting agent's, then 10.",
    )
    context: Optional[ContextConfig] = Field(
        default=None,
        description="Trimming limits; derived from the model table when unset.",
    )
    parallel_tool_calls: bool = False
    stop_predicate: Optional[Callable[[], bool]] = Field(
        default=None, description="Polled before every step; True aborts the run."
    )
    input_guardrails: List[InstanceOf[InputGuardrail]] = Field(default_factory=list)
    output_guardrails: List[InstanceOf[OutputGuardrail]] = Field(
        default_factory=list
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def from_settings(cls, settings: "Settings", **overrides) -> "RunConfig":
        """
        Builds run options from loaded settings.

        Args:
            settings: Loaded runtime settings.
            overrides: Fields that take precedence over settings values.

        Returns:
            A RunConfig reflecting the settings.
        """
        model = overrides.pop("model", None) or settings.get_model_name()
        context = ContextConfig(
            strategy=settings.context_strategy,
            max_tokens=settings.context_max_tokens or max_tokens_for_model(model),
            max_messages=settings.context_max_messages,
            preserve_system=settings.context_preserve_system,
            preserve_recent=settings.context_preserve_recent,
        )
        values = {
            "model": model,
            "max_turns": settings.max_turns,
            "context": context,
            "parallel_tool_calls": settings.parallel_tool_calls,
        }
        values.update(overrides)
        return cls(**values)

    def context_for(self, model: Optional[str]) -> ContextConfig:
        """Returns the configured limits, or the model's defaults."""

        if self.context is not None:
            return self.context
        return ContextConfig.for_model(model)
