"""Configuration settings using pydantic-settings."""

import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, YamlConfigSettingsSource

from dso.config.constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_CONFIG_FILE,
    DEFAULT_DELAY_MS,
    DEFAULT_LOG_DIR,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MODELS,
    DEFAULT_OUTPUT_FILE,
    DEFAULT_PROMPT_TEMPLATE,
    DEFAULT_SYSTEM_INSTRUCTION,
    DEFAULT_TEMPERATURE,
    DEFAULT_THINKING_BUDGET,
    MAX_CONCURRENCY,
    PROVIDER_API_KEY_ENV_VARS,
    REQUEST_TIMEOUT_SECONDS,
    TEXT_PLACEHOLDER,
)


class PipelineConfig(BaseModel):
    """Generation and scheduling parameters for one run.

    Frozen: a new run gets a new instance (``model_copy(update=...)``), so
    work already dispatched never observes a change.
    """

    model_config = ConfigDict(frozen=True)

    concurrency: int = Field(default=DEFAULT_CONCURRENCY, ge=1, le=MAX_CONCURRENCY)
    delay_ms: int = Field(default=DEFAULT_DELAY_MS, ge=0)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    use_native_thinking: bool = False
    thinking_budget: int = Field(default=DEFAULT_THINKING_BUDGET, ge=0)
    system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION
    prompt_template: str = DEFAULT_PROMPT_TEMPLATE

    @field_validator("prompt_template")
    @classmethod
    def _check_placeholder(cls, value: str) -> str:
        count = value.count(TEXT_PLACEHOLDER)
        if count != 1:
            raise ValueError(
                f"prompt_template must contain the {TEXT_PLACEHOLDER} placeholder exactly once "
                f"(found {count})"
            )
        return value

    def render_prompt(self, text: str) -> str:
        """Substitute the original text into the prompt template."""
        return self.prompt_template.replace(TEXT_PLACEHOLDER, text, 1)


class ProviderConfig(BaseModel):
    """Configuration for the inference provider."""

    provider: Literal["gemini", "openai", "anthropic", "mock"] = "gemini"
    model: str | None = None
    api_key: str | None = None
    api_key_env: str | None = None
    base_url: str | None = None  # Custom proxy / enterprise endpoint
    timeout: int = Field(default=REQUEST_TIMEOUT_SECONDS, ge=1)

    @property
    def effective_model(self) -> str:
        """Configured model or the provider's default."""
        return self.model or DEFAULT_MODELS[self.provider]

    def resolve_api_key(self) -> str | None:
        """Resolve the API key: explicit > api_key_env > provider default env vars."""
        if self.api_key:
            return self.api_key
        if self.api_key_env and os.environ.get(self.api_key_env):
            return os.environ[self.api_key_env]
        for env_var in PROVIDER_API_KEY_ENV_VARS.get(self.provider, []):
            value = os.environ.get(env_var)
            if value:
                return value
        return None


class DSOSettings(BaseSettings):
    """Main configuration class for DSO."""

    model_config = SettingsConfigDict(
        env_prefix="DSO_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        """Customize settings sources to include YAML file."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=DEFAULT_CONFIG_FILE),
            file_secret_settings,
        )

    # Sub-configurations
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    # Global settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_dir: str = DEFAULT_LOG_DIR
    output_file: str = DEFAULT_OUTPUT_FILE


@lru_cache
def get_settings() -> DSOSettings:
    """Get cached settings instance."""
    return DSOSettings()


def reload_settings() -> DSOSettings:
    """Force reload settings (clear cache)."""
    get_settings.cache_clear()
    return get_settings()
