from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

TRUNCATION_NOTICE_PREFIX = "[Note: "
SUMMARY_NOTICE_PREFIX = "[Summary of "


class Role(str, Enum):
    """Conversation roles understood by providers."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolCall(BaseModel):
    """A function call requested by the model."""

    id: str = Field(default_factory=lambda: f"call_{uuid4().hex}")
    name: str = Field(description="Name of the tool or handoff to invoke.")
    arguments: str = Field(
        default="{}", description="JSON-encoded keyword arguments."
    )

    model_config = ConfigDict(frozen=True)

    def to_provider_dict(self) -> Dict[str, Any]:
        """Return the OpenAI-style tool call shape."""

        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


class Message(BaseModel):
    """A single conversation entry."""

    role: Role
    content: Optional[str] = None
    tool_calls: List[ToolCall] = Field(default_factory=list)
    tool_call_id: Optional[str] = None
    name: Optional[str] = None
    agent: Optional[str] = Field(
        default=None,
        description="Name of the agent that produced the message.",
        exclude=True,
    )

    model_config = ConfigDict(frozen=True)

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(
        cls,
        content: Optional[str] = None,
        tool_calls: Optional[List[ToolCall]] = None,
        agent: Optional[str] = None,
    ) -> "Message":
        return cls(
            role=Role.ASSISTANT,
            content=content,
            tool_calls=list(tool_calls or []),
            agent=agent,
        )

    @classmethod
    def tool(
        cls,
        tool_call_id: str,
        content: str,
        name: Optional[str] = None,
        agent: Optional[str] = None,
    ) -> "Message":
        return cls(
            role=Role.TOOL,
            content=content,
            tool_call_id=tool_call_id,
            name=name,
            agent=agent,
        )

    @property
    def is_truncation_notice(self) -> bool:
        """True for the synthetic notice inserted by context trimming."""

        return (
            self.role == Role.SYSTEM
            and self.content is not None
            and (
                self.content.startswith(TRUNCATION_NOTICE_PREFIX)
                or self.content.startswith(SUMMARY_NOTICE_PREFIX)
            )
        )

    def to_provider_dict(self) -> Dict[str, Any]:
        """Render the message in the OpenAI chat shape used by adapters."""

        rendered: Dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_calls:
            rendered["tool_calls"] = [call.to_provider_dict() for call in self.tool_calls]
        if self.tool_call_id is not None:
            rendered["tool_call_id"] = self.tool_call_id
        if self.name is not None:
            rendered["name"] = self.name
        return rendered
