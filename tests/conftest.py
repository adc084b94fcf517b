"""Pytest configuration and fixtures."""

import asyncio
import os
from collections.abc import Callable
from pathlib import Path

import pytest

from dso.config.settings import PipelineConfig, get_settings
from dso.core.state import WorkItem
from dso.llm.base import BaseProvider

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent


class FakeProvider(BaseProvider):
    """In-process provider whose responses are scripted per input text.

    ``responses`` maps an original text to either a raw response string or an
    exception to raise; unmapped texts get a protocol-formatted echo.
    """

    name = "fake"
    display_name = "Fake"

    def __init__(
        self,
        responses: dict[str, str | Exception] | None = None,
        latency: float = 0.0,
        valid: bool = True,
        timeout: float = 5,
    ) -> None:
        super().__init__(model="fake-model", request_timeout=timeout)
        self.client = object()
        self.responses = responses or {}
        self.latency = latency
        self.valid = valid
        self.calls: list[str] = []
        self.ping_count = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.on_call: Callable[[str], None] | None = None

    def _original_of(self, prompt: str, config: PipelineConfig) -> str:
        prefix, _, suffix = config.prompt_template.partition("{{text}}")
        return prompt[len(prefix) : len(prompt) - len(suffix)]

    async def _generate(self, prompt: str, config: PipelineConfig) -> str:
        text = self._original_of(prompt, config)
        self.calls.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.on_call is not None:
                self.on_call(text)
            if self.latency:
                await asyncio.sleep(self.latency)
            response = self.responses.get(text)
            if isinstance(response, Exception):
                raise response
            if response is None:
                return f"---REASONING---\nechoed\n---REWRITTEN---\n{text.upper()}"
            return response
        finally:
            self.in_flight -= 1

    async def _ping(self, model: str) -> None:
        self.ping_count += 1
        if not self.valid:
            raise RuntimeError("401 invalid api key")


@pytest.fixture
def fake_provider() -> FakeProvider:
    """Fake provider with instant echo responses."""
    return FakeProvider()


@pytest.fixture
def fast_config() -> PipelineConfig:
    """Pipeline configuration without throttle delay."""
    return PipelineConfig(concurrency=2, delay_ms=0)


@pytest.fixture
def make_items() -> Callable[..., list[WorkItem]]:
    """Factory for Idle work items ``1..n`` with texts ``text-1..text-n``."""

    def _make(count: int) -> list[WorkItem]:
        return [WorkItem(id=str(i), original_text=f"text-{i}") for i in range(1, count + 1)]

    return _make


@pytest.fixture
def isolated_settings(tmp_path, monkeypatch):
    """Run with no dso.yaml, no DSO_* or provider key env vars, and a fresh settings cache."""
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("DSO_") or key in {
            "GEMINI_API_KEY",
            "GOOGLE_API_KEY",
            "OPENAI_API_KEY",
            "ANTHROPIC_API_KEY",
        }:
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()
