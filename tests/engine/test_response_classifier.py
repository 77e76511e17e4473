from baton.domain.agent import Agent
from baton.domain.handoff import Handoff
from baton.engine.response_classifier import classify
from baton.llm.provider import ModelResponse


def _response(*items) -> ModelResponse:
    return ModelResponse.parse({"output": list(items)})


def test_partitions_messages_tools_and_handoffs(responses) -> None:
    agent = Agent(name="Primary", handoffs=["Writer"])
    response = _response(
        {"type": "message", "role": "assistant", "content": "Working on it."},
        responses.call("search", '{"q": "x"}', "c1"),
        responses.call("transfer_to_writer", "{}", "c2"),
    )

    classified = classify(response, agent)

    assert [m.content for m in classified.messages] == ["Working on it."]
    assert [c.id for c in classified.tool_calls] == ["c1"]
    assert [c.id for c in classified.handoff_calls] == ["c2"]


def test_declared_custom_tool_name_is_a_handoff(responses) -> None:
    agent = Agent(
        name="Primary", handoffs=[Handoff.for_target("Billing", tool_name="escalate")]
    )

    classified = classify(_response(responses.call("escalate", "{}", "c1")), agent)

    assert classified.has_handoff
    assert not classified.has_tool_calls


def test_undeclared_transfer_prefix_is_still_a_handoff(responses) -> None:
    agent = Agent(name="Primary")

    classified = classify(
        _response(responses.call("transfer_to_ghost", "{}", "c1")), agent
    )

    assert [c.name for c in classified.handoff_calls] == ["transfer_to_ghost"]


def test_assistant_message_keeps_only_first_handoff(responses) -> None:
    agent = Agent(name="Primary", handoffs=["Writer", "Research"])
    response = _response(
        responses.call("transfer_to_research", "{}", "h1"),
        responses.call("lookup", "{}", "t1"),
        responses.call("transfer_to_writer", "{}", "h2"),
    )

    message = classify(response, agent).assistant_message("Primary")

    assert [c.id for c in message.tool_calls] == ["t1", "h1"]
    assert message.agent == "Primary"


def test_final_text_is_last_message() -> None:
    agent = Agent(name="Primary")
    response = _response(
        {"type": "message", "content": "first"},
        {"type": "message", "content": "second"},
    )

    assert classify(response, agent).final_text() == "second"
    assert classify(_response(), agent).final_text() == ""
