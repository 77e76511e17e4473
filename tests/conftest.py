"""Shared fixtures: a scripted provider and response builders."""

from __future__ import annotations

import os

# Use litellm's bundled model cost map instead of fetching it over the network
# in a background thread at import time.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from typing import Any, Dict, List, Optional
from uuid import uuid4

import pytest


class ScriptedProvider:
    """Provider adapter returning pre-recorded responses in order."""

    def __init__(self, responses: List[Any]) -> None:
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def complete(self, messages, model, tools):
        self.calls.append({"messages": messages, "model": model, "tools": tools})
        if not self.responses:
            raise AssertionError("No scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


class ResponseBuilder:
    """Builds raw provider responses in the adapter's mapping shape."""

    @staticmethod
    def usage(tokens: int = 0) -> Dict[str, int]:
        return {"input_tokens": tokens, "output_tokens": 0, "total_tokens": tokens}

    @staticmethod
    def call(
        name: str, arguments: str = "{}", call_id: Optional[str] = None
    ) -> Dict[str, Any]:
        return {
            "type": "function_call",
            "name": name,
            "arguments": arguments,
            "call_id": call_id or f"call_{uuid4().hex[:8]}",
        }

    @classmethod
    def text(cls, content: str, tokens: int = 0) -> Dict[str, Any]:
        return {
            "output": [{"type": "message", "role": "assistant", "content": content}],
            "usage": cls.usage(tokens),
        }

    @classmethod
    def calls(
        cls, *calls: Dict[str, Any], text: Optional[str] = None, tokens: int = 0
    ) -> Dict[str, Any]:
        output: List[Dict[str, Any]] = []
        if text is not None:
            output.append({"type": "message", "role": "assistant", "content": text})
        output.extend(calls)
        return {"output": output, "usage": cls.usage(tokens)}


@pytest.fixture
def responses() -> type[ResponseBuilder]:
    return ResponseBuilder


@pytest.fixture
def scripted_provider():
    """Factory fixture: scripted_provider([response, ...])."""

    return ScriptedProvider
