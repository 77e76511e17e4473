import pytest

from baton.domain.exceptions import ConfigurationError
from baton.domain.tool import FunctionTool
from baton.engine.registry import ToolRegistry


def _tool(name: str) -> FunctionTool:
    return FunctionTool.from_callable(lambda: name, name=name)


def test_registry_lookup_by_name() -> None:
    registry = ToolRegistry.from_tools([_tool("a"), _tool("b")])

    assert registry.get("a").name == "a"
    assert registry.get("missing") is None
    assert "b" in registry
    assert registry.names() == ["a", "b"]
    assert len(registry) == 2


def test_registry_rejects_duplicates() -> None:
    registry = ToolRegistry.from_tools([_tool("a")])

    with pytest.raises(ConfigurationError):
        registry.register(_tool("a"))


def test_registries_are_independent() -> None:
    first = ToolRegistry.from_tools([_tool("a")])
    second = ToolRegistry()

    assert "a" in first
    assert "a" not in second
