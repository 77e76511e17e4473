from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MAX_TOKENS = 7500

# Ordered so that longer prefixes win (gpt-3.5-turbo-16k before gpt-3.5-turbo).
MODEL_TOKEN_BUDGETS = (
    ("gpt-4o", 120000),
    ("gpt-4-turbo", 120000),
    ("gpt-3.5-turbo-16k", 15000),
    ("gpt-3.5-turbo", 3500),
)


class ContextStrategy(str, Enum):
    """How the context window manager drops history."""

    TOKEN_SLIDING_WINDOW = "token_sliding_window"
    MESSAGE_COUNT = "message_count"
    SUMMARIZATION = "summarization"


class ContextConfig(BaseModel):
    """Trimming limits applied before every provider call."""

    strategy: ContextStrategy = ContextStrategy.TOKEN_SLIDING_WINDOW
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, gt=0)
    max_messages: int = Field(default=50, gt=0)
    preserve_system: bool = True
    preserve_recent: int = Field(default=5, ge=0)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def for_model(cls, model: Optional[str], **overrides) -> "ContextConfig":
        """
        Builds a config whose token budget fits the named model.

        Args:
            model: Model identifier, possibly provider-prefixed ("openai/gpt-4o").
            overrides: Any other ContextConfig fields.

        Returns:
            A ContextConfig with max_tokens derived from the model table
            unless explicitly overridden.
        """
        overrides.setdefault("max_tokens", max_tokens_for_model(model))
        return cls(**overrides)


def max_tokens_for_model(model: Optional[str]) -> int:
    if not model:
        return DEFAULT_MAX_TOKENS
    name = model.split("/")[-1].lower()
    for prefix, budget in MODEL_TOKEN_BUDGETS:
        if name.startswith(prefix):
            return budget
    return DEFAULT_MAX_TOKENS
