import logging
from typing import Any, Callable, List, Mapping, Optional, Union

from tenacity import RetryCallState, RetryError, Retrying, stop_after_attempt

from baton.domain.error_details import build_exception_details
from baton.domain.exceptions import RetryExhaustedError
from baton.llm.llm_error_mapper import classify_error
from baton.llm.llm_retry_policy import (
    DEFAULT_MAX_ATTEMPTS,
    default_retry_condition,
    default_wait_strategy,
)
from baton.llm.provider import ModelResponse, ProviderAdapter, ProviderMessage, ToolSchema

logger = logging.getLogger(__name__)


class RetryingProvider:
    """Provider decorator retrying transient failures with backoff.

    Authentication and unclassified errors are raised unchanged on the first
    attempt. Retryable errors that persist past the last attempt surface as
    RetryExhaustedError chained to the final error.
    """

    def __init__(
        self,
        provider: ProviderAdapter,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        wait_strategy: Optional[Any] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        """Initialize the wrapper.

        Args:
            provider: The adapter to wrap.
            max_attempts: Maximum attempts including the initial call.
            wait_strategy: Tenacity wait strategy for backoff.
            sleep: Sleep function, replaceable in tests.
        """

        self._provider = provider
        self._max_attempts = max(1, max_attempts)
        self._wait_strategy = wait_strategy or default_wait_strategy()
        self._sleep = sleep

    def complete(
        self,
        messages: List[ProviderMessage],
        model: str,
        tools: List[ToolSchema],
    ) -> Union[ModelResponse, Mapping[str, Any]]:
        options: dict[str, Any] = {
            "stop": stop_after_attempt(self._max_attempts),
            "retry": default_retry_condition(),
            "wait": self._wait_strategy,
            "before_sleep": self._log_retry,
            "reraise": False,
        }
        if self._sleep is not None:
            options["sleep"] = self._sleep
        retrying = Retrying(**options)
        try:
            return retrying(self._provider.complete, messages, model, tools)
        except RetryError as exc:
            last_error = exc.last_attempt.exception()
            category = classify_error(last_error)
            raise RetryExhaustedError(
                f"Provider call failed after {self._max_attempts} attempts "
                f"({category.value}): {last_error}",
                category=category.value,
                attempts=self._max_attempts,
            ) from last_error

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        wait = retry_state.next_action.sleep if retry_state.next_action else None
        logger.warning(
            "Retrying provider call",
            extra={
                "attempt": retry_state.attempt_number,
                "category": classify_error(error).value if error else None,
                "wait_seconds": wait,
                "error": build_exception_details(error) if error else None,
            },
        )
