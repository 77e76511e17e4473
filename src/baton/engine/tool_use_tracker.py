from typing import Dict, Iterable, List, Union

from baton.domain.agent import Agent

AgentRef = Union[Agent, str]


def _agent_name(agent: AgentRef) -> str:
    return agent if isinstance(agent, str) else agent.name


class ToolUseTracker:
    """
    Per-run record of the tools each agent used.

    Entries are deduplicated and keep first-use order. Nothing is ever removed.
    """

    def __init__(self) -> None:
        self._usage: Dict[str, List[str]] = {}

    def add_tool_use(self, agent: AgentRef, tool_names: Iterable[str]) -> None:
        used = self._usage.setdefault(_agent_name(agent), [])
        for name in tool_names:
            if name not in used:
                used.append(name)

    def has_used_tools(self, agent: AgentRef) -> bool:
        return bool(self._usage.get(_agent_name(agent)))

    def tools_used_by(self, agent: AgentRef) -> List[str]:
        return list(self._usage.get(_agent_name(agent), []))

    def total_usage_count(self) -> int:
        """Sum of each agent's distinct tool names."""

        return sum(len(names) for names in self._usage.values())

    def summary(self) -> Dict[str, List[str]]:
        return {name: list(tools) for name, tools in self._usage.items() if tools}
