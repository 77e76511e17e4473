"""Tests for input and output guardrails."""

import pytest

from baton.domain.exceptions import InputGuardrailTripwire, OutputGuardrailTripwire
from baton.domain.guardrail import InputGuardrail, OutputGuardrail


def test_input_guardrail_false_vetoes() -> None:
    guardrail = InputGuardrail("no_secrets", lambda text: "password" not in text)

    guardrail.check("hello")
    with pytest.raises(InputGuardrailTripwire) as exc_info:
        guardrail.check("my password is hunter2")

    assert exc_info.value.guardrail_name == "no_secrets"


def test_input_guardrail_exception_is_wrapped() -> None:
    def reject(text: str) -> None:
        raise ValueError("blocked topic")

    with pytest.raises(InputGuardrailTripwire, match="blocked topic"):
        InputGuardrail("topics", reject).check("anything")


def test_output_guardrail_rewrites_text() -> None:
    guardrail = OutputGuardrail("redact", lambda text: text.replace("secret", "***"))

    assert guardrail.apply("the secret plan") == "the *** plan"


def test_output_guardrail_none_keeps_text() -> None:
    guardrail = OutputGuardrail("noop", lambda text: None)

    assert guardrail.apply("unchanged") == "unchanged"


def test_output_guardrail_false_vetoes() -> None:
    guardrail = OutputGuardrail("length", lambda text: len(text) < 5)

    assert guardrail.apply("ok") == "ok"
    with pytest.raises(OutputGuardrailTripwire):
        guardrail.apply("far too long")
