from tenacity import retry_if_exception, wait_exponential_jitter

from baton.llm.llm_error_mapper import is_retryable

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_INITIAL_DELAY = 1.0
DEFAULT_MAX_DELAY = 30.0


def default_retry_condition():
    """Return the tenacity condition retrying only retryable categories."""

    return retry_if_exception(is_retryable)


def default_wait_strategy(
    initial: float = DEFAULT_INITIAL_DELAY, max_delay: float = DEFAULT_MAX_DELAY
):
    """Return the default tenacity wait strategy (doubling, jittered)."""

    return wait_exponential_jitter(initial=initial, max=max_delay, exp_base=2)
