from pathlib import Path
from typing import Optional

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import (
    DotEnvSettingsSource,
    EnvSettingsSource,
    JsonConfigSettingsSource,
)

from baton.domain.context_config import ContextStrategy

DEFAULT_BATON_DIR = Path(".baton")
DEFAULT_CONFIG_PATH = DEFAULT_BATON_DIR / "config.json"


class Settings(BaseSettings):
    """
    Runtime settings loaded from environment variables, .env, and JSON.
    """

    openai_api_key: Optional[SecretStr] = Field(
        default=None, description="OpenAI API key used for provider access."
    )
    model_name: str = Field(
        default="gpt-4o", description="Default model for agents without one."
    )
    litellm_use_proxy: bool = Field(
        default=False, description="Route provider traffic through the LiteLLM proxy."
    )
    litellm_proxy_url: Optional[str] = Field(
        default=None, description="LiteLLM proxy base URL."
    )
    litellm_proxy_api_key: Optional[SecretStr] = Field(
        default=None, description="LiteLLM proxy API key."
    )
    env: str = Field(default="dev", description="Execution environment name.")
    max_turns: int = Field(default=10, gt=0, description="Default turn budget.")
    context_strategy: ContextStrategy = Field(
        default=ContextStrategy.TOKEN_SLIDING_WINDOW,
        description="History trimming strategy.",
    )
    context_max_tokens: Optional[int] = Field(
        default=None,
        gt=0,
        description="Token budget; derived from the model when unset.",
    )
    context_max_messages: int = Field(default=50, gt=0)
    context_preserve_system: bool = Field(default=True)
    context_preserve_recent: int = Field(default=5, ge=0)
    parallel_tool_calls: bool = Field(
        default=False, description="Run a step's tool calls on a thread pool."
    )
    retry_max_attempts: int = Field(
        default=5, ge=1, description="Provider attempts including the first."
    )
    retry_initial_delay: float = Field(default=1.0, ge=0)
    retry_max_delay: float = Field(default=30.0, ge=0)
    rate_limit_per_minute: Optional[float] = Field(
        default=None, gt=0, description="Provider requests per minute; unset disables."
    )
    rate_limit_burst: int = Field(default=1, ge=1)
    rate_limit_timeout: Optional[float] = Field(
        default=None, ge=0, description="Seconds to wait for a permit; unset waits."
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="forbid"
    )

    @model_validator(mode="after")
    def _check_proxy(self) -> "Settings":
        if self.litellm_use_proxy and not self.litellm_proxy_url:
            raise ValueError(
                "LiteLLM proxy URL is required when proxy mode is enabled."
            )
        return self

    @staticmethod
    def _secret_to_str(secret: Optional[SecretStr]) -> Optional[str]:
        """Return the underlying secret value if present."""

        if secret is None:
            return None
        return secret.get_secret_value()

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Settings":
        """
        Loads settings, layering JSON < .env < environment.

        Args:
            path: Optional override path for the JSON config file.

        Returns:
            A validated settings object.
        """
        config_path = path or DEFAULT_CONFIG_PATH
        if not config_path.exists():
            return cls()

        json_source = JsonConfigSettingsSource(cls, json_file=config_path)
        dotenv_source = DotEnvSettingsSource(cls)
        env_source = EnvSettingsSource(cls)
        merged: dict[str, object] = {}
        merged.update(json_source())
        merged.update(dotenv_source())
        merged.update(env_source())
        return cls.model_validate(merged)

    def get_openai_api_key(self) -> Optional[str]:
        return self._secret_to_str(self.openai_api_key)

    def use_litellm_proxy(self) -> bool:
        """Returns whether LiteLLM proxy usage is enabled."""

        return self.litellm_use_proxy

    def get_litellm_proxy_url(self) -> Optional[str]:
        return self.litellm_proxy_url

    def get_litellm_proxy_api_key(self) -> Optional[str]:
        return self._secret_to_str(self.litellm_proxy_api_key)

    def get_model_name(self) -> str:
        return self.model_name

    def rate_limit_enabled(self) -> bool:
        return self.rate_limit_per_minute is not None
