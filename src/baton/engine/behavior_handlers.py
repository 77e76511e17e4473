from typing import Any, Mapping, Sequence

from baton.domain.agent import Agent
from baton.domain.messages import Message, ToolCall
from baton.domain.tool import ToolResult
from baton.domain.tool_use_behavior import (
    CustomToolUseBehavior,
    RunLLMAgain,
    StopAtTools,
    StopOnFirstTool,
    ToolsToFinalOutput,
    ToolUseBehavior,
    ToolUseBehaviorType,
    ToolUseDecision,
)


def _result_value(result: ToolResult) -> Any:
    return result.output if result.succeeded else result.content


class ToolUseBehaviorHandler:
    """Namespace for tool-use policy execution logic."""

    @staticmethod
    def handle(
        behavior: ToolUseBehavior,
        agent: Agent,
        calls: Sequence[ToolCall],
        results: Sequence[ToolResult],
        conversation: Sequence[Message],
    ) -> ToolUseDecision:
        """Dispatch to the specific handler based on behavior type."""
        if not results:
            return ToolUseDecision.keep_going()
        if isinstance(behavior, RunLLMAgain):
            return ToolUseDecision.keep_going()
        if isinstance(behavior, StopOnFirstTool):
            return ToolUseBehaviorHandler.stop_on_first_tool(results)
        if isinstance(behavior, StopAtTools):
            return ToolUseBehaviorHandler.stop_at_tools(behavior, results)
        if isinstance(behavior, ToolsToFinalOutput):
            return ToolUseBehaviorHandler.tools_to_final_output(behavior, results)
        if isinstance(behavior, CustomToolUseBehavior):
            return ToolUseBehaviorHandler.custom(
                behavior, agent, calls, results, conversation
            )
        # Bare ToolUseBehavior instances only carry a type.
        if behavior.type == ToolUseBehaviorType.STOP_ON_FIRST_TOOL:
            return ToolUseBehaviorHandler.stop_on_first_tool(results)
        return ToolUseDecision.keep_going()

    @staticmethod
    def stop_on_first_tool(results: Sequence[ToolResult]) -> ToolUseDecision:
        return ToolUseDecision.finish(_result_value(results[0]))

    @staticmethod
    def stop_at_tools(
        behavior: StopAtTools, results: Sequence[ToolResult]
    ) -> ToolUseDecision:
        for result in results:
            if result.tool_name in behavior.tool_names:
                return ToolUseDecision.finish(_result_value(result))
        return ToolUseDecision.keep_going()

    @staticmethod
    def tools_to_final_output(
        behavior: ToolsToFinalOutput, results: Sequence[ToolResult]
    ) -> ToolUseDecision:
        """Finish with the extractor's value over the matching results."""
        matching = [r for r in results if r.tool_name in behavior.tool_names]
        if not matching:
            return ToolUseDecision.keep_going()
        if behavior.extractor is None:
            value = matching[0].content
        else:
            value = behavior.extractor(matching)
        return ToolUseDecision.finish(value, record_as_message=value is not None)

    @staticmethod
    def custom(
        behavior: CustomToolUseBehavior,
        agent: Agent,
        calls: Sequence[ToolCall],
        results: Sequence[ToolResult],
        conversation: Sequence[Message],
    ) -> ToolUseDecision:
        """
        Normalizes a caller-supplied decision.

        True continues and False stops. A mapping is read with the defaults
        continue=True and done=False. Any other value continues. Stopping
        without a final_output uses the last result's content.
        """
        verdict = behavior.function(agent, list(calls), list(results), list(conversation))
        if verdict is True:
            return ToolUseDecision.keep_going()
        if verdict is False:
            return ToolUseDecision.finish(results[-1].content)
        if isinstance(verdict, Mapping):
            should_continue = bool(verdict.get("continue", True))
            done = bool(verdict.get("done", False))
            if done or not should_continue:
                final_output = verdict.get("final_output")
                if final_output is None:
                    final_output = results[-1].content
                return ToolUseDecision.finish(final_output)
        return ToolUseDecision.keep_going()
