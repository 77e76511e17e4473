import json
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Protocol, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from baton.domain.exceptions import ResponseValidationError
from baton.domain.usage import Usage

ProviderMessage = Dict[str, Any]
ToolSchema = Dict[str, Any]


class MessageOutput(BaseModel):
    """A text item in a provider response."""

    type: Literal["message"] = "message"
    role: str = "assistant"
    content: Optional[str] = None

    @field_validator("content", mode="before")
    @classmethod
    def _join_parts(cls, value: Any) -> Any:
        # Some adapters return content as a list of {"type": "text", "text": ...} parts.
        if isinstance(value, list):
            texts = []
            for part in value:
                if isinstance(part, Mapping):
                    texts.append(str(part.get("text") or ""))
                else:
                    texts.append(str(part))
            return "".join(texts)
        return value


class FunctionCallOutput(BaseModel):
    """A tool or handoff call requested by the model."""

    type: Literal["function_call"] = "function_call"
    name: str = Field(min_length=1)
    arguments: str = "{}"
    call_id: str = Field(min_length=1)

    @field_validator("arguments", mode="before")
    @classmethod
    def _encode_arguments(cls, value: Any) -> Any:
        if value is None or value == "":
            return "{}"
        if isinstance(value, Mapping):
            return json.dumps(dict(value))
        return value


OutputItem = Annotated[
    Union[MessageOutput, FunctionCallOutput], Field(discriminator="type")
]


class ModelResponse(BaseModel):
    """Normalized provider response: ordered output items plus usage."""

    output: List[OutputItem]
    usage: Usage = Field(default_factory=Usage)

    @field_validator("output", mode="before")
    @classmethod
    def _infer_item_types(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        items = []
        for item in value:
            if isinstance(item, Mapping) and "type" not in item:
                item = dict(item)
                item["type"] = "function_call" if "call_id" in item else "message"
            items.append(item)
        return items

    @field_validator("usage", mode="before")
    @classmethod
    def _default_usage(cls, value: Any) -> Any:
        return {} if value is None else value

    @classmethod
    def parse(cls, raw: Union["ModelResponse", Mapping[str, Any]]) -> "ModelResponse":
        """
        Validates a raw adapter response.

        Args:
            raw: A ModelResponse or a mapping with output and usage keys.

        Returns:
            The validated response.

        Raises:
            ResponseValidationError: When fields are missing or malformed.
        """
        if isinstance(raw, ModelResponse):
            return raw
        if not isinstance(raw, Mapping):
            raise ResponseValidationError(
                f"Provider response must be a mapping, got {type(raw).__name__}"
            )
        try:
            return cls.model_validate(dict(raw))
        except ValidationError as exc:
            raise ResponseValidationError(
                f"Malformed provider response: {exc.error_count()} error(s)"
            ) from exc

    def messages(self) -> List[MessageOutput]:
        return [item for item in self.output if isinstance(item, MessageOutput)]

    def function_calls(self) -> List[FunctionCallOutput]:
        return [item for item in self.output if isinstance(item, FunctionCallOutput)]

    def text(self) -> str:
        """Content of the last message item, or an empty string."""

        for item in reversed(self.messages()):
            if item.content:
                return item.content
        return ""


class ProviderAdapter(Protocol):
    """Protocol for the model provider consumed by the runtime."""

    def complete(
        self,
        messages: List[ProviderMessage],
        model: str,
        tools: List[ToolSchema],
    ) -> Union[ModelResponse, Mapping[str, Any]]:
        """Send one request and return the response.

        Args:
            messages: OpenAI-style role messages, oldest first.
            model: Model identifier.
            tools: OpenAI-style function tool schemas.

        Returns:
            A ModelResponse or an equivalent mapping.
        """

        ...
