"""Tests for context trimming configuration."""

import pytest
from pydantic import ValidationError

from baton.domain.context_config import ContextConfig, ContextStrategy


@pytest.mark.parametrize(
    ("model", "expected"),
    [
        ("gpt-4o", 120000),
        ("gpt-4o-mini", 120000),
        ("gpt-4-turbo", 120000),
        ("gpt-3.5-turbo-16k", 15000),
        ("gpt-3.5-turbo", 3500),
        ("openai/gpt-4o", 120000),
        ("unknown", 7500),
        (None, 7500),
    ],
)
def test_for_model_uses_model_table(model, expected) -> None:
    assert ContextConfig.for_model(model).max_tokens == expected


def test_for_model_keeps_explicit_overrides() -> None:
    config = ContextConfig.for_model("gpt-4o", max_tokens=100, preserve_recent=2)

    assert config.max_tokens == 100
    assert config.preserve_recent == 2


def test_defaults() -> None:
    config = ContextConfig()

    assert config.strategy == ContextStrategy.TOKEN_SLIDING_WINDOW
    assert config.preserve_system is True
    assert config.preserve_recent == 5


def test_rejects_negative_preserve_recent() -> None:
    with pytest.raises(ValidationError):
        ContextConfig(preserve_recent=-1)


def test_is_immutable() -> None:
    config = ContextConfig()

    with pytest.raises(ValidationError):
        config.max_tokens = 10
