import re
from enum import Enum
from typing import Any, Dict, Optional

import httpx
import litellm
from pydantic_ai.exceptions import ModelHTTPError

from baton.domain.exceptions import (
    ApiKeyError,
    ContextLengthError,
    RateLimitError,
    RateLimitTimeoutError,
)


class ErrorCategory(str, Enum):
    """Provider failure categories used by the retrying provider."""

    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    CONTEXT_TOO_LARGE = "context_too_large"
    MODEL_OVERLOADED = "model_overloaded"
    NETWORK_ERROR = "network_error"
    AUTHENTICATION_ERROR = "authentication_error"
    UNKNOWN = "unknown"

    @property
    def retryable(self) -> bool:
        return self not in (ErrorCategory.AUTHENTICATION_ERROR, ErrorCategory.UNKNOWN)


# Checked in order; the first matching category wins.
ERROR_PATTERNS = (
    (
        ErrorCategory.RATE_LIMIT,
        (r"rate limit", r"too many requests", r"quota exceeded", r"throttl", r"429"),
    ),
    (
        ErrorCategory.TIMEOUT,
        (r"timeout", r"timed out"),
    ),
    (
        ErrorCategory.CONTEXT_TOO_LARGE,
        (
            r"context.*too large",
            r"maximum context length",
            r"context size.*exceed",
            r"token limit",
            r"input.*too long",
        ),
    ),
    (
        ErrorCategory.MODEL_OVERLOADED,
        (
            r"model.*overloaded",
            r"service unavailable",
            r"temporarily unavailable",
            r"503",
            r"502",
            r"gateway",
        ),
    ),
    (
        ErrorCategory.NETWORK_ERROR,
        (r"network", r"connection", r"dns", r"socket", r"unreachable"),
    ),
    (
        ErrorCategory.AUTHENTICATION_ERROR,
        (r"unauthorized", r"authentication", r"401", r"invalid.*key", r"forbidden", r"403"),
    ),
)

_COMPILED_PATTERNS = tuple(
    (category, tuple(re.compile(p, re.IGNORECASE) for p in patterns))
    for category, patterns in ERROR_PATTERNS
)

_TYPED_CATEGORIES = (
    (RateLimitError, ErrorCategory.RATE_LIMIT),
    (RateLimitTimeoutError, ErrorCategory.RATE_LIMIT),
    (ApiKeyError, ErrorCategory.AUTHENTICATION_ERROR),
    (ContextLengthError, ErrorCategory.CONTEXT_TOO_LARGE),
    (litellm.ContextWindowExceededError, ErrorCategory.CONTEXT_TOO_LARGE),
    (litellm.RateLimitError, ErrorCategory.RATE_LIMIT),
    (litellm.AuthenticationError, ErrorCategory.AUTHENTICATION_ERROR),
    (litellm.Timeout, ErrorCategory.TIMEOUT),
    (litellm.ServiceUnavailableError, ErrorCategory.MODEL_OVERLOADED),
    (litellm.BadGatewayError, ErrorCategory.MODEL_OVERLOADED),
    (litellm.InternalServerError, ErrorCategory.MODEL_OVERLOADED),
    (litellm.APIConnectionError, ErrorCategory.NETWORK_ERROR),
    (httpx.TimeoutException, ErrorCategory.TIMEOUT),
    (httpx.RequestError, ErrorCategory.NETWORK_ERROR),
    (TimeoutError, ErrorCategory.TIMEOUT),
    (ConnectionError, ErrorCategory.NETWORK_ERROR),
)


def classify_error(error: BaseException) -> ErrorCategory:
    """Classify a provider exception into a retry category.

    Structured signals (exception types, HTTP status codes and error payloads)
    are checked before message and class-name patterns.

    Args:
        error: Exception raised by a provider call.

    Returns:
        The matching ErrorCategory, UNKNOWN when nothing matches.
    """

    for error_type, category in _TYPED_CATEGORIES:
        if isinstance(error, error_type):
            return category

    status_code = _status_code(error)
    if status_code is not None:
        category = _category_for_status(status_code, _error_payload(error))
        if category is not None:
            return category

    haystacks = (str(error), type(error).__name__)
    for category, patterns in _COMPILED_PATTERNS:
        for pattern in patterns:
            if any(pattern.search(text) for text in haystacks):
                return category
    return ErrorCategory.UNKNOWN


def is_retryable(error: BaseException) -> bool:
    return classify_error(error).retryable


def _status_code(error: BaseException) -> Optional[int]:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    if isinstance(error, ModelHTTPError):
        return error.status_code
    status_code = getattr(error, "status_code", None)
    return status_code if isinstance(status_code, int) else None


def _category_for_status(
    status_code: int, payload: Dict[str, Any]
) -> Optional[ErrorCategory]:
    if status_code == 429:
        return ErrorCategory.RATE_LIMIT
    if status_code in (401, 403):
        return ErrorCategory.AUTHENTICATION_ERROR
    if status_code in (408, 504):
        return ErrorCategory.TIMEOUT
    if _is_context_length_payload(payload) or status_code == 413:
        return ErrorCategory.CONTEXT_TOO_LARGE
    if status_code in (500, 502, 503, 529):
        return ErrorCategory.MODEL_OVERLOADED
    return None


def _error_payload(error: BaseException) -> Dict[str, Any]:
    """Extract the JSON error body of an HTTP failure, if any."""

    if isinstance(error, httpx.HTTPStatusError):
        try:
            payload = error.response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}
    if isinstance(error, ModelHTTPError) and isinstance(error.body, dict):
        return error.body
    return {}


def _is_context_length_payload(payload: Dict[str, Any]) -> bool:
    """Return True when payload indicates a context-length error."""

    error_info = payload.get("error", payload)
    if not isinstance(error_info, dict):
        return False
    code = error_info.get("code") or error_info.get("type")
    if isinstance(code, str) and code.strip().lower() in {
        "context_length_exceeded",
        "context_window_exceeded",
    }:
        return True
    message = error_info.get("message")
    return isinstance(message, str) and "maximum context length" in message.lower()
