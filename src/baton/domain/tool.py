from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from baton.domain.exceptions import ToolExecutionError

EMPTY_PARAMETERS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {},
    "additionalProperties": True,
}


@dataclass
class BaseTool(ABC):
    """
    Abstract base class for all tools an agent may call.
    """

    name: str
    description: str

    def parameters_schema(self) -> Dict[str, Any]:
        """
        Returns the JSON schema describing the tool's keyword arguments.

        Tools without declared parameters accept an open object.

        Returns:
            A JSON-schema dictionary.
        """
        return dict(EMPTY_PARAMETERS_SCHEMA)

    @abstractmethod
    def call(self, **kwargs: Any) -> Any:
        """
        Executes the tool with decoded keyword arguments.

        Args:
            kwargs: Arguments decoded from the model's JSON payload.

        Returns:
            Any value; the dispatcher coerces it to text.
        """
        raise NotImplementedError

    def as_openai_tool(self) -> Dict[str, Any]:
        """
        Returns an OpenAI-compatible tool schema definition.

        Returns:
            A dictionary describing the tool for LLM binding.
        """
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters_schema(),
            },
        }


@dataclass
class FunctionTool(BaseTool):
    """
    Tool backed by a plain Python callable.
    """

    function: Callable[..., Any]
    schema: Optional[Dict[str, Any]] = None

    @classmethod
    def from_callable(
        cls,
        function: Callable[..., Any],
        name: Optional[str] = None,
        description: Optional[str] = None,
        schema: Optional[Dict[str, Any]] = None,
    ) -> "FunctionTool":
        """
        Builds a tool from a callable, defaulting name and description.

        Args:
            function: The callable to invoke with keyword arguments.
            name: Tool name; defaults to the function name.
            description: Tool description; defaults to the docstring.
            schema: Optional JSON schema for the parameters.

        Returns:
            A FunctionTool wrapping the callable.
        """
        doc = (function.__doc__ or "").strip()
        return cls(
            name=name or function.__name__,
            description=description or doc or f"Call {function.__name__}.",
            function=function,
            schema=schema,
        )

    def parameters_schema(self) -> Dict[str, Any]:
        if self.schema is None:
            return super().parameters_schema()
        return dict(self.schema)

    def call(self, **kwargs: Any) -> Any:
        return self.function(**kwargs)


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one dispatched tool call."""

    call_id: str
    tool_name: str
    content: str
    output: Any = None
    error: Optional[ToolExecutionError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None
