"""Composition of the default provider stack from settings."""

from typing import Optional

from baton.config import Settings
from baton.llm.llm_retry_policy import default_wait_strategy
from baton.llm.provider import ProviderAdapter
from baton.llm.pydantic_ai_provider import PydanticAIProvider
from baton.llm.rate_limiter import RateLimitedProvider, TokenBucket
from baton.llm.retrying_provider import RetryingProvider


def build_provider(
    settings: Settings, adapter: Optional[ProviderAdapter] = None
) -> ProviderAdapter:
    """
    Wraps an adapter with retries and, when configured, rate limiting.

    Args:
        settings: Loaded runtime settings.
        adapter: Base adapter; defaults to a PydanticAIProvider.

    Returns:
        The composed provider: adapter, then retry, then rate limit.
    """
    provider: ProviderAdapter = adapter or PydanticAIProvider.from_settings(settings)
    provider = RetryingProvider(
        provider,
        max_attempts=settings.retry_max_attempts,
        wait_strategy=default_wait_strategy(
            settings.retry_initial_delay, settings.retry_max_delay
        ),
    )
    if settings.rate_limit_enabled():
        bucket = TokenBucket(
            settings.rate_limit_per_minute, burst=settings.rate_limit_burst
        )
        provider = RateLimitedProvider(
            provider, bucket, timeout=settings.rate_limit_timeout
        )
    return provider
