"""OpenAI provider implementation."""

from typing import Any

from openai import AsyncOpenAI

from dso.config.constants import DEFAULT_MODELS, REQUEST_TIMEOUT_SECONDS
from dso.config.settings import PipelineConfig
from dso.llm.base import BaseProvider


def _reasoning_effort(thinking_budget: int) -> str:
    """Map a token budget onto OpenAI's coarse reasoning effort levels."""
    if thinking_budget <= 1024:
        return "low"
    if thinking_budget <= 8192:
        return "medium"
    return "high"


class OpenAIProvider(BaseProvider):
    """OpenAI API provider using the official SDK."""

    name = "openai"
    display_name = "OpenAI"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODELS["openai"],
        base_url: str | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key; without one the provider stays uninitialized
            model: Model to use (default: gpt-4o-mini)
            base_url: Optional custom base URL (for proxies/compatible APIs)
            timeout: Hard deadline per transform request in seconds
        """
        super().__init__(model=model, request_timeout=timeout)
        if api_key:
            # Retries are manual (requeue), never inside the SDK
            self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)

    async def _generate(self, prompt: str, config: PipelineConfig) -> str:
        request_params: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": config.system_instruction},
                {"role": "user", "content": prompt},
            ],
        }
        if config.use_native_thinking:
            # Reasoning models reject a custom temperature
            request_params["reasoning_effort"] = _reasoning_effort(config.thinking_budget)
        else:
            request_params["temperature"] = config.temperature

        response = await self.client.chat.completions.create(**request_params)
        return response.choices[0].message.content or ""

    async def _ping(self, model: str) -> None:
        await self.client.models.retrieve(model)
