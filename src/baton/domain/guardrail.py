from dataclasses import dataclass
from typing import Any, Callable, Optional

from baton.domain.exceptions import InputGuardrailTripwire, OutputGuardrailTripwire


@dataclass(frozen=True)
class InputGuardrail:
    """
    Check applied to user input before the first step.

    The function receives the input text. Returning False or raising vetoes
    the run; any other return value lets it proceed.
    """

    name: str
    function: Callable[[str], Any]

    def check(self, text: str) -> None:
        """
        Runs the guardrail against a piece of user input.

        Args:
            text: The user message content.

        Raises:
            InputGuardrailTripwire: When the guardrail rejects the input.
        """
        try:
            verdict = self.function(text)
        except InputGuardrailTripwire:
            raise
        except Exception as exc:
            raise InputGuardrailTripwire(self.name, str(exc)) from exc
        if verdict is False:
            raise InputGuardrailTripwire(self.name)


@dataclass(frozen=True)
class OutputGuardrail:
    """
    Check applied to the final text of a run.

    The function receives the final text and may return replacement text.
    Returning None keeps the text; returning False or raising vetoes it.
    """

    name: str
    function: Callable[[str], Any]

    def apply(self, text: str) -> str:
        """
        Runs the guardrail and returns the (possibly rewritten) text.

        Args:
            text: Final output text.

        Returns:
            The text to emit.

        Raises:
            OutputGuardrailTripwire: When the guardrail rejects the output.
        """
        try:
            verdict: Optional[Any] = self.function(text)
        except OutputGuardrailTripwire:
            raise
        except Exception as exc:
            raise OutputGuardrailTripwire(self.name, str(exc)) from exc
        if verdict is False:
            raise OutputGuardrailTripwire(self.name)
        if isinstance(verdict, str):
            return verdict
        return text
