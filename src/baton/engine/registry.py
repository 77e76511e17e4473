from typing import Dict, Iterable, List, Optional

from baton.domain.exceptions import ConfigurationError
from baton.domain.tool import BaseTool


class ToolRegistry:
    """Name to tool lookup built from an agent's tool list."""

    def __init__(self) -> None:
        self._tools: Dict[str, BaseTool] = {}

    @classmethod
    def from_tools(cls, tools: Iterable[BaseTool]) -> "ToolRegistry":
        registry = cls()
        for tool in tools:
            registry.register(tool)
        return registry

    def register(self, tool: BaseTool) -> None:
        """Adds a tool; names must be unique within the registry."""
        if tool.name in self._tools:
            raise ConfigurationError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Optional[BaseTool]:
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
