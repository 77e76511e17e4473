"""Structured, redacted exception details for logs and tool results."""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping

REDACTED_VALUE = "<redacted>"
DEFAULT_MAX_STRING_LENGTH = 256

_SECRET_KEYS = ("api_key", "apikey", "authorization", "token", "secret", "password")

_TOKEN_PATTERNS = (
    re.compile(r"sk-[A-Za-z0-9]{10,}"),
    re.compile(r"(?i)bearer\s+[A-Za-z0-9._-]{10,}"),
)


def sanitize_text(value: str, max_length: int = DEFAULT_MAX_STRING_LENGTH) -> str:
    """Redact secret-looking tokens and cap the length of a string.

    Args:
        value: Input text value.
        max_length: Maximum length of the returned string.

    Returns:
        A redacted, length-capped string.
    """

    redacted = value
    for pattern in _TOKEN_PATTERNS:
        redacted = pattern.sub(REDACTED_VALUE, redacted)
    if len(redacted) <= max_length:
        return redacted
    return f"{redacted[:max_length]}...[truncated]"


def redact_mapping(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a shallow copy with secret-named keys masked and strings capped."""

    redacted: Dict[str, Any] = {}
    for key, value in values.items():
        key_text = str(key)
        if any(fragment in key_text.lower() for fragment in _SECRET_KEYS):
            redacted[key_text] = REDACTED_VALUE
        elif isinstance(value, str):
            redacted[key_text] = sanitize_text(value)
        else:
            redacted[key_text] = value
    return redacted


def build_exception_details(
    error: BaseException,
    max_string_length: int = DEFAULT_MAX_STRING_LENGTH,
) -> Dict[str, Any]:
    """Summarize an exception (and its direct cause) for structured logging.

    Args:
        error: Exception to summarize.
        max_string_length: Maximum length for message fields.

    Returns:
        A sanitized error detail dictionary.
    """

    details: Dict[str, Any] = {"error_class": error.__class__.__name__}
    message = str(error)
    if message:
        details["message"] = sanitize_text(message, max_length=max_string_length)
    cause = error.__cause__
    if cause is not None:
        details["cause_class"] = cause.__class__.__name__
        cause_message = str(cause)
        if cause_message:
            details["cause_message"] = sanitize_text(
                cause_message, max_length=max_string_length
            )
    return details
