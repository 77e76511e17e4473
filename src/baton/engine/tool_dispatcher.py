"""Tool execution for a single step."""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence

from baton.domain.agent import Agent
from baton.domain.error_details import build_exception_details, redact_mapping
from baton.domain.exceptions import ToolExecutionError
from baton.domain.messages import Message, ToolCall
from baton.domain.tool import ToolResult
from baton.engine.registry import ToolRegistry

logger = logging.getLogger(__name__)


def decode_arguments(raw: str) -> Dict[str, Any]:
    """
    Decodes a call's JSON argument string into keyword arguments.

    Raises:
        ValueError: When the payload is not a JSON object.
    """
    if not raw or not raw.strip():
        return {}
    decoded = json.loads(raw)
    if decoded is None:
        return {}
    if not isinstance(decoded, dict):
        raise ValueError(
            f"arguments must be a JSON object, got {type(decoded).__name__}"
        )
    return decoded


def render_output(output: Any) -> str:
    if output is None:
        return ""
    if isinstance(output, str):
        return output
    if isinstance(output, (dict, list)):
        return json.dumps(output, default=str)
    return str(output)


class ToolDispatcher:
    """
    Executes an agent's tool calls and converts failures into tool results.

    A failing or missing tool never raises out of dispatch; the agent sees
    the error text as the call's result.

    Args:
        max_workers: Thread pool size used for parallel dispatch.
    """

    def __init__(self, max_workers: Optional[int] = None) -> None:
        self.max_workers = max_workers

    def dispatch(
        self,
        agent: Agent,
        calls: Sequence[ToolCall],
        *,
        parallel: bool = False,
    ) -> List[ToolResult]:
        """
        Runs every call and returns results in call order.

        Args:
            agent: Agent whose tools serve the calls.
            calls: Ordinary tool calls from one response.
            parallel: Run the calls on a thread pool.

        Returns:
            One ToolResult per call, in the order of calls.
        """
        if not calls:
            return []
        registry = ToolRegistry.from_tools(agent.tools)
        if parallel and len(calls) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                return list(
                    executor.map(
                        lambda call: self._execute(registry, call, agent.name), calls
                    )
                )
        return [self._execute(registry, call, agent.name) for call in calls]

    def _execute(
        self, registry: ToolRegistry, call: ToolCall, agent_name: str
    ) -> ToolResult:
        tool = registry.get(call.name)
        if tool is None:
            logger.warning(
                "Tool not found",
                extra={"agent": agent_name, "tool": call.name, "call_id": call.id},
            )
            return ToolResult(
                call_id=call.id,
                tool_name=call.name,
                content=f"Error: Tool {call.name} not found or access denied.",
                error=ToolExecutionError(
                    call.name, None, LookupError(f"unknown tool {call.name}")
                ),
            )

        arguments: Optional[Dict[str, Any]] = None
        try:
            arguments = decode_arguments(call.arguments)
            output = tool.call(**arguments)
        except Exception as exc:
            error = ToolExecutionError(call.name, arguments, exc)
            logger.warning(
                "Tool execution failed",
                extra={
                    "agent": agent_name,
                    "tool": call.name,
                    "call_id": call.id,
                    "arguments": redact_mapping(arguments or {}),
                    "error": build_exception_details(exc),
                },
            )
            return ToolResult(
                call_id=call.id,
                tool_name=call.name,
                content=str(error),
                error=error,
            )

        return ToolResult(
            call_id=call.id,
            tool_name=call.name,
            content=render_output(output),
            output=output,
        )


def result_messages(results: Sequence[ToolResult], agent_name: str) -> List[Message]:
    """Tool-role messages for a batch of results, in result order."""

    return [
        Message.tool(
            tool_call_id=result.call_id,
            content=result.content,
            name=result.tool_name,
            agent=agent_name,
        )
        for result in results
    ]
