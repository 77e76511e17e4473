"""Tests for tool-use policy execution."""

from baton.domain.agent import Agent
from baton.domain.messages import ToolCall
from baton.domain.exceptions import ToolExecutionError
from baton.domain.tool import ToolResult
from baton.domain.tool_use_behavior import (
    StopAtTools,
    custom_behavior,
    run_llm_again,
    stop_at_tools,
    stop_on_first_tool,
    tools_to_final_output,
)
from baton.engine.behavior_handlers import ToolUseBehaviorHandler

AGENT = Agent(name="Primary")
CALLS = [ToolCall(id="t1", name="search"), ToolCall(id="t2", name="weather")]
RESULTS = [
    ToolResult(call_id="t1", tool_name="search", content="found", output="found"),
    ToolResult(call_id="t2", tool_name="weather", content="21C", output={"temp": 21}),
]


def _handle(behavior, results=RESULTS):
    return ToolUseBehaviorHandler.handle(behavior, AGENT, CALLS, results, [])


def test_run_llm_again_continues() -> None:
    decision = _handle(run_llm_again())

    assert decision.should_continue
    assert not decision.done


def test_stop_on_first_tool_uses_first_output() -> None:
    decision = _handle(stop_on_first_tool())

    assert decision.done
    assert decision.final_output == "found"


def test_stop_on_first_tool_uses_error_text_for_failures() -> None:
    failed = ToolResult(
        call_id="t1",
        tool_name="search",
        content="Error executing search: boom",
        error=ToolExecutionError("search", {}, RuntimeError("boom")),
    )

    assert _handle(stop_on_first_tool(), [failed]).final_output == (
        "Error executing search: boom"
    )


def test_stop_at_tools_matches_names() -> None:
    assert _handle(stop_at_tools("weather")).final_output == {"temp": 21}
    assert _handle(stop_at_tools("calendar")).should_continue


def test_stop_at_tools_accepts_single_name_string() -> None:
    assert StopAtTools(tool_names="weather").tool_names == ["weather"]


def test_tools_to_final_output_default_extractor() -> None:
    decision = _handle(tools_to_final_output("weather"))

    assert decision.done
    assert decision.final_output == "21C"
    assert decision.record_as_message


def test_tools_to_final_output_custom_extractor() -> None:
    decision = _handle(
        tools_to_final_output(
            "search", "weather", extractor=lambda results: len(results)
        )
    )

    assert decision.final_output == 2


def test_tools_to_final_output_none_is_not_recorded() -> None:
    decision = _handle(tools_to_final_output("weather", extractor=lambda r: None))

    assert decision.done
    assert not decision.record_as_message


def test_custom_boolean_verdicts() -> None:
    assert _handle(custom_behavior(lambda *args: True)).should_continue

    stopped = _handle(custom_behavior(lambda *args: False))
    assert stopped.done
    assert stopped.final_output == "21C"


def test_custom_mapping_verdicts() -> None:
    done = _handle(
        custom_behavior(lambda *args: {"done": True, "final_output": "all set"})
    )
    assert done.final_output == "all set"

    defaults = _handle(custom_behavior(lambda *args: {}))
    assert defaults.should_continue
    assert not defaults.done

    halted = _handle(custom_behavior(lambda *args: {"continue": False}))
    assert halted.done


def test_custom_other_values_continue() -> None:
    assert _handle(custom_behavior(lambda *args: "maybe")).should_continue


def test_custom_receives_context() -> None:
    seen = {}

    def decide(agent, calls, results, conversation):
        seen.update(agent=agent.name, calls=len(calls), results=len(results))
        return True

    _handle(custom_behavior(decide))

    assert seen == {"agent": "Primary", "calls": 2, "results": 2}
