"""Tests for provider error classification."""

from __future__ import annotations

import httpx
import litellm
import pytest
from pydantic_ai.exceptions import ModelHTTPError

from baton.domain.exceptions import ApiKeyError, ContextLengthError, RateLimitError
from baton.llm.llm_error_mapper import (
    ErrorCategory,
    _is_context_length_payload,
    classify_error,
    is_retryable,
)


def _http_error(status: int, **kwargs) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://example.com")
    response = httpx.Response(status, request=request, **kwargs)
    return httpx.HTTPStatusError("request failed", request=request, response=response)


@pytest.mark.parametrize(
    ("status", "category"),
    [
        (429, ErrorCategory.RATE_LIMIT),
        (401, ErrorCategory.AUTHENTICATION_ERROR),
        (403, ErrorCategory.AUTHENTICATION_ERROR),
        (504, ErrorCategory.TIMEOUT),
        (413, ErrorCategory.CONTEXT_TOO_LARGE),
        (503, ErrorCategory.MODEL_OVERLOADED),
    ],
)
def test_http_status_codes(status: int, category: ErrorCategory) -> None:
    assert classify_error(_http_error(status)) == category


def test_http_context_payload() -> None:
    """A 400 carrying a context-length body is a context error."""
    error = _http_error(400, json={"error": {"code": "context_length_exceeded"}})

    assert classify_error(error) == ErrorCategory.CONTEXT_TOO_LARGE


def test_model_http_error_status() -> None:
    error = ModelHTTPError(status_code=429, model_name="gpt-4o", body=None)

    assert classify_error(error) == ErrorCategory.RATE_LIMIT


def test_typed_exceptions() -> None:
    assert classify_error(RateLimitError("slow down")) == ErrorCategory.RATE_LIMIT
    assert classify_error(ApiKeyError("bad")) == ErrorCategory.AUTHENTICATION_ERROR
    assert classify_error(ContextLengthError("big")) == ErrorCategory.CONTEXT_TOO_LARGE
    assert classify_error(TimeoutError()) == ErrorCategory.TIMEOUT
    assert classify_error(ConnectionResetError()) == ErrorCategory.NETWORK_ERROR


def test_litellm_exceptions() -> None:
    error = litellm.RateLimitError(
        message="limit", llm_provider="openai", model="gpt-4o"
    )

    assert classify_error(error) == ErrorCategory.RATE_LIMIT


@pytest.mark.parametrize(
    ("message", "category"),
    [
        ("Rate limit reached for requests", ErrorCategory.RATE_LIMIT),
        ("Request timed out", ErrorCategory.TIMEOUT),
        ("This model's maximum context length is 8192", ErrorCategory.CONTEXT_TOO_LARGE),
        ("The model is overloaded", ErrorCategory.MODEL_OVERLOADED),
        ("DNS lookup failed", ErrorCategory.NETWORK_ERROR),
        ("Invalid API key provided", ErrorCategory.AUTHENTICATION_ERROR),
        ("something odd happened", ErrorCategory.UNKNOWN),
    ],
)
def test_message_patterns(message: str, category: ErrorCategory) -> None:
    assert classify_error(RuntimeError(message)) == category


def test_retryable_categories() -> None:
    assert is_retryable(RuntimeError("429 Too Many Requests"))
    assert is_retryable(RuntimeError("maximum context length exceeded"))
    assert not is_retryable(RuntimeError("401 unauthorized"))
    assert not is_retryable(ValueError("bad input"))


def test_context_payload_helper() -> None:
    assert _is_context_length_payload({"error": {"type": "context_window_exceeded"}})
    assert _is_context_length_payload(
        {"message": "This exceeds the maximum context length"}
    )
    assert not _is_context_length_payload({"error": "plain string"})
