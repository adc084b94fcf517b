"""Tests for command-line option resolution and callbacks."""

from pathlib import Path

import pytest
import typer

from dso.cli.callbacks import validate_input_file, validate_llm_provider, validate_output_file
from dso.cli.options import ProviderOptions, RunOptions
from dso.config.settings import DSOSettings, PipelineConfig, ProviderConfig
from dso.exceptions import ConfigurationError


@pytest.fixture
def settings(isolated_settings):  # noqa: ARG001
    return DSOSettings(
        provider=ProviderConfig(provider="gemini", model="gemini-2.5-pro"),
        pipeline=PipelineConfig(concurrency=4, delay_ms=100),
    )


class TestProviderOptions:
    """Tests for ProviderOptions.resolve_provider."""

    def test_no_overrides(self, settings):
        assert ProviderOptions().resolve_provider(settings) == settings.provider

    def test_model_override(self, settings):
        resolved = ProviderOptions(model="gemini-2.5-flash").resolve_provider(settings)

        assert resolved.model == "gemini-2.5-flash"

    def test_other_provider_drops_configured_model(self, settings):
        resolved = ProviderOptions(provider="openai").resolve_provider(settings)

        assert resolved.provider == "openai"
        assert resolved.effective_model == "gpt-4o-mini"

    def test_same_provider_keeps_model(self, settings):
        resolved = ProviderOptions(provider="gemini").resolve_provider(settings)

        assert resolved.model == "gemini-2.5-pro"


class TestRunOptions:
    """Tests for RunOptions."""

    def test_pipeline_defaults_from_settings(self, settings):
        config = RunOptions().resolve_pipeline(settings)

        assert config.concurrency == 4
        assert config.delay_ms == 100

    def test_pipeline_overrides(self, settings):
        config = RunOptions(concurrency=8, delay_ms=0, native_thinking=True).resolve_pipeline(settings)

        assert config.concurrency == 8
        assert config.delay_ms == 0
        assert config.use_native_thinking is True
        assert config.temperature == settings.pipeline.temperature

    def test_invalid_override(self, settings):
        with pytest.raises(ConfigurationError, match="Invalid pipeline configuration"):
            RunOptions(concurrency=500).resolve_pipeline(settings)

    def test_resolve_output(self, settings):
        assert RunOptions().resolve_output(settings) == Path("DSO_Export.json")
        assert RunOptions(output=Path("x.json")).resolve_output(settings) == Path("x.json")

    def test_log_context_skips_unset(self):
        context = RunOptions(provider="mock", concurrency=3).as_log_context()

        assert context == {"provider": "mock", "concurrency": 3}


class TestCallbacks:
    """Tests for CLI callbacks."""

    def test_input_file(self, tmp_path):
        path = tmp_path / "a.json"
        path.write_text("[]", encoding="utf-8")

        assert validate_input_file(path) == path
        with pytest.raises(typer.BadParameter, match="File not found"):
            validate_input_file(tmp_path / "missing.json")
        with pytest.raises(typer.BadParameter, match="not a file"):
            validate_input_file(tmp_path)

    def test_output_file(self, tmp_path):
        assert validate_output_file(None) is None
        assert validate_output_file(tmp_path / "out.json") == tmp_path / "out.json"
        with pytest.raises(typer.BadParameter, match="directory"):
            validate_output_file(tmp_path)

    def test_llm_provider(self):
        assert validate_llm_provider("mock") == "mock"
        assert validate_llm_provider(None) is None
        with pytest.raises(typer.BadParameter, match="Options"):
            validate_llm_provider("ollama")
