from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Usage(BaseModel):
    """Token usage reported by a provider call or accumulated over a run."""

    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _fill_total(cls, data: Any) -> Any:
        """Derive total_tokens when the provider omits it."""

        if not isinstance(data, dict):
            return data
        normalized = {key: value for key, value in data.items() if value is not None}
        if not normalized.get("total_tokens"):
            normalized["total_tokens"] = normalized.get(
                "input_tokens", 0
            ) + normalized.get("output_tokens", 0)
        return normalized

    def add(self, other: "Usage") -> "Usage":
        """Return the sum of two usage records."""

        return Usage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )
