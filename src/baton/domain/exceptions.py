from typing import Any, Dict, Optional


class BatonError(Exception):
    """Base exception for the Baton runtime."""

    pass


class ConfigurationError(BatonError):
    """Agents, tools, or run options were configured inconsistently."""

    pass


class HandoffConstructionError(ConfigurationError):
    """A handoff was declared with a target of an unsupported type."""

    pass


class ResponseValidationError(BatonError):
    """Provider response is missing required fields or is malformed."""

    pass


class ToolExecutionError(BatonError):
    """A tool raised while handling a call.

    Captured by the dispatcher and turned into a textual tool result so the
    agent can react; never propagated out of a step.
    """

    def __init__(
        self,
        tool_name: str,
        arguments: Optional[Dict[str, Any]],
        original: BaseException,
    ) -> None:
        super().__init__(f"Error executing {tool_name}: {original}")
        self.tool_name = tool_name
        self.arguments = arguments or {}
        self.original = original


class MaxTurnsError(BatonError):
    """The run exhausted its turn budget."""

    def __init__(self, max_turns: int) -> None:
        super().__init__(f"Maximum turns ({max_turns}) exceeded")
        self.max_turns = max_turns


class StopRequested(BatonError):
    """The caller's stop predicate asked the run to abort."""

    pass


class GuardrailTripwireError(BatonError):
    """A guardrail vetoed the run."""

    stage = "guardrail"

    def __init__(self, guardrail_name: str, message: str = "") -> None:
        detail = message or "tripwire triggered"
        super().__init__(f"{self.stage} guardrail '{guardrail_name}': {detail}")
        self.guardrail_name = guardrail_name


class InputGuardrailTripwire(GuardrailTripwireError):
    """An input guardrail rejected the user input."""

    stage = "input"


class OutputGuardrailTripwire(GuardrailTripwireError):
    """An output guardrail rejected the final output."""

    stage = "output"


class LLMError(BatonError):
    """Base exception for provider interaction failures."""

    pass


class RateLimitError(LLMError):
    """Provider returned 429 Rate Limit Exceeded."""

    pass


class ApiKeyError(LLMError):
    """Provider returned 401/403 Authentication Error."""

    pass


class ContextLengthError(LLMError):
    """Prompt exceeded model context limits."""

    pass


class RetryExhaustedError(LLMError):
    """Raised when the retrying provider runs out of attempts."""

    def __init__(self, message: str, category: str, attempts: int) -> None:
        super().__init__(message)
        self.category = category
        self.attempts = attempts


class RateLimitTimeoutError(LLMError):
    """The token bucket could not grant a permit within the timeout."""

    pass
