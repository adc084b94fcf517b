"""Command-line overrides layered over the loaded settings."""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from dso.config.settings import PipelineConfig, ProviderConfig
from dso.exceptions import ConfigurationError

if TYPE_CHECKING:
    from dso.config.settings import DSOSettings


@dataclass
class ProviderOptions:
    """Provider overrides shared by the run and validate commands."""

    provider: str | None = None
    model: str | None = None

    def resolve_provider(self, settings: "DSOSettings") -> ProviderConfig:
        """Apply provider overrides to the configured provider."""
        update: dict[str, Any] = {}
        if self.provider is not None and self.provider != settings.provider.provider:
            # Another vendor: the configured model name no longer applies
            update["provider"] = self.provider
            update["model"] = None
        if self.model is not None:
            update["model"] = self.model
        return settings.provider.model_copy(update=update)


@dataclass
class RunOptions(ProviderOptions):
    """Options of the run command; None means "use the configured value"."""

    output: Path | None = None
    concurrency: int | None = None
    delay_ms: int | None = None
    max_retries: int | None = None
    temperature: float | None = None
    native_thinking: bool | None = None
    thinking_budget: int | None = None
    retry_failed: bool = False
    verbose: bool = False

    def _pipeline_overrides(self) -> dict[str, Any]:
        mapping = {
            "concurrency": self.concurrency,
            "delay_ms": self.delay_ms,
            "max_retries": self.max_retries,
            "temperature": self.temperature,
            "use_native_thinking": self.native_thinking,
            "thinking_budget": self.thinking_budget,
        }
        return {key: value for key, value in mapping.items() if value is not None}

    def resolve_pipeline(self, settings: "DSOSettings") -> PipelineConfig:
        """Build the run configuration, validating the merged values.

        Raises:
            ConfigurationError: An override is out of range
        """
        merged = {**settings.pipeline.model_dump(), **self._pipeline_overrides()}
        try:
            return PipelineConfig.model_validate(merged)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid pipeline configuration: {e}") from e

    def resolve_output(self, settings: "DSOSettings") -> Path:
        """Output path with fallback to the configured default."""
        return self.output or Path(settings.output_file)

    def as_log_context(self) -> dict[str, Any]:
        """Option values for the task log."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name)}
