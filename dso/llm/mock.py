"""Offline mock provider for dry runs and resilience testing.

Simulates latency plus random server errors and rate limits, and answers
in the reasoning/rewritten section format so the full parse path runs.

Example:
    ```python
    provider = MockProvider(MockConfig(failure_rate=0.1, rate_limit_prob=0.05, seed=7))
    result = await provider.transform("hey u there?", PipelineConfig())
    ```
"""

import asyncio
import random
from dataclasses import dataclass

from dso.config.constants import DEFAULT_MODELS, REASONING_MARKER, REWRITTEN_MARKER
from dso.config.settings import PipelineConfig
from dso.exceptions import ProviderInternalError, RateLimitError
from dso.llm.base import BaseProvider


@dataclass
class MockConfig:
    """Configuration for mock behavior.

    Attributes:
        latency_mean: Mean latency in seconds
        latency_stddev: Standard deviation for latency
        failure_rate: Probability of a simulated 500 error
        rate_limit_prob: Probability of a simulated 429
        seed: Seed for reproducible runs (None = nondeterministic)
    """

    latency_mean: float = 0.2
    latency_stddev: float = 0.1
    failure_rate: float = 0.0
    rate_limit_prob: float = 0.0
    seed: int | None = None


@dataclass
class MockStats:
    """Call counters for the mock provider."""

    call_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    rate_limit_count: int = 0


class MockProvider(BaseProvider):
    """Provider that needs no network or credentials."""

    name = "mock"
    display_name = "Mock"

    def __init__(
        self,
        config: MockConfig | None = None,
        model: str = DEFAULT_MODELS["mock"],
        timeout: float = 60,
    ) -> None:
        super().__init__(model=model, request_timeout=timeout)
        self.config = config or MockConfig()
        self.stats = MockStats()
        self._random = random.Random(self.config.seed)
        # No real client; any non-None marker counts as initialized
        self.client = object()

    async def _generate(self, prompt: str, config: PipelineConfig) -> str:
        self.stats.call_count += 1
        latency = max(0.0, self._random.gauss(self.config.latency_mean, self.config.latency_stddev))
        await asyncio.sleep(latency)

        roll = self._random.random()
        if roll < self.config.rate_limit_prob:
            self.stats.rate_limit_count += 1
            raise RateLimitError()
        if roll < self.config.rate_limit_prob + self.config.failure_rate:
            self.stats.failure_count += 1
            raise ProviderInternalError(self.display_name)

        self.stats.success_count += 1
        if config.use_native_thinking:
            return prompt.strip()
        return (
            f"{REASONING_MARKER}\n"
            f"1. Read the {len(prompt)}-character prompt.\n"
            f"2. Kept the text unchanged (mock provider).\n"
            f"{REWRITTEN_MARKER}\n"
            f"{prompt.strip()}"
        )

    async def _ping(self, model: str) -> None:
        await asyncio.sleep(0)
