"""Tests for handoff resolution and execution."""

import json
from datetime import datetime, timezone

import pytest

from baton.domain.agent import Agent
from baton.domain.handoff import Handoff, HandoffContext
from baton.domain.messages import ToolCall
from baton.engine.handoff_coordinator import HandoffCoordinator

FIXED_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _coordinator() -> HandoffCoordinator:
    return HandoffCoordinator(clock=lambda: FIXED_TIME)


def test_resolve_is_exact_and_case_sensitive() -> None:
    writer = Agent(name="Writer")
    agents = {"Writer": writer}

    assert _coordinator().resolve("Writer", agents) is writer
    assert _coordinator().resolve("writer", agents) is None


def test_resolve_call_maps_declared_handoff() -> None:
    writer = Agent(name="Writer")
    primary = Agent(name="Primary", handoffs=["Writer"])
    call = ToolCall(
        id="h1", name="transfer_to_writer", arguments='{"reason": "drafting"}'
    )

    resolution = _coordinator().resolve_call(
        primary, call, {"Primary": primary, "Writer": writer}
    )

    assert resolution.resolved
    assert resolution.target is writer
    assert resolution.payload == {"reason": "drafting"}


def test_resolve_call_rejects_undeclared_target() -> None:
    primary = Agent(name="Primary")
    ghost = Agent(name="Ghost")
    call = ToolCall(id="h1", name="transfer_to_ghost")

    resolution = _coordinator().resolve_call(
        primary, call, {"Primary": primary, "Ghost": ghost}
    )

    assert not resolution.resolved
    assert "not declared" in resolution.reason


def test_resolve_call_rejects_missing_agent() -> None:
    primary = Agent(name="Primary", handoffs=["Writer"])

    resolution = _coordinator().resolve_call(
        primary, ToolCall(id="h1", name="transfer_to_writer"), {"Primary": primary}
    )

    assert not resolution.resolved
    assert "not available" in resolution.reason


def test_malformed_payload_becomes_empty() -> None:
    writer = Agent(name="Writer")
    primary = Agent(name="Primary", handoffs=["Writer"])

    resolution = _coordinator().resolve_call(
        primary,
        ToolCall(id="h1", name="transfer_to_writer", arguments="{oops"),
        {"Writer": writer},
    )

    assert resolution.resolved
    assert resolution.payload == {}


def test_execute_records_chain_and_merges_context() -> None:
    primary = Agent(name="Primary")
    writer = Agent(name="Writer")
    context = HandoffContext(current_agent=primary, shared_context={"topic": "old"})
    hook_payloads = []

    record = _coordinator().execute(
        primary,
        writer,
        {"topic": "new", "secret": "x"},
        context,
        input_filter=lambda payload: {k: v for k, v in payload.items() if k != "secret"},
        on_handoff=hook_payloads.append,
    )

    assert record.from_agent == "Primary"
    assert record.to_agent == "Writer"
    assert record.timestamp == FIXED_TIME
    assert context.handoff_chain == (record,)
    assert context.shared_context == {"topic": "new"}
    assert context.current_agent is writer
    assert hook_payloads == [{"topic": "new"}]
    assert context.agent_path() == ["Primary", "Writer"]


def test_on_handoff_errors_propagate() -> None:
    primary = Agent(name="Primary")
    context = HandoffContext(current_agent=primary)

    def fail(payload):
        raise RuntimeError("hook failed")

    with pytest.raises(RuntimeError, match="hook failed"):
        _coordinator().execute(
            primary, Agent(name="Writer"), {}, context, on_handoff=fail
        )
    assert len(context.handoff_chain) == 1


def test_build_handoff_tools_uses_contracts() -> None:
    contract = {"type": "object", "properties": {"ticket": {"type": "string"}}}
    agent = Agent(
        name="Primary",
        handoffs=["Writer", Handoff.for_target("Billing", data_contract=contract)],
    )

    tools = _coordinator().build_handoff_tools(agent)

    assert [t["function"]["name"] for t in tools] == [
        "transfer_to_writer",
        "transfer_to_billing",
    ]
    assert tools[1]["function"]["parameters"] == contract
    assert tools[0]["function"]["description"] == (
        "Handoff to the Writer agent to handle the request."
    )


def test_transfer_message_names_target() -> None:
    message = HandoffCoordinator.transfer_message(
        ToolCall(id="h1", name="transfer_to_writer"), "Writer", "Primary"
    )

    assert json.loads(message.content) == {"assistant": "Writer"}
    assert message.tool_call_id == "h1"
