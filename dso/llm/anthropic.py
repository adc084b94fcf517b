"""Anthropic Claude provider implementation."""

from typing import Any

from anthropic import AsyncAnthropic

from dso.config.constants import DEFAULT_MODELS, REQUEST_TIMEOUT_SECONDS
from dso.config.settings import PipelineConfig
from dso.llm.base import BaseProvider

DEFAULT_MAX_TOKENS = 4096
# Anthropic rejects extended thinking budgets below this
MIN_THINKING_BUDGET = 1024


class AnthropicProvider(BaseProvider):
    """Anthropic Claude API provider using the official SDK."""

    name = "anthropic"
    display_name = "Anthropic Claude"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODELS["anthropic"],
        base_url: str | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key; without one the provider stays uninitialized
            model: Model to use (default: claude-sonnet-4-5)
            base_url: Optional custom base URL (for proxies)
            timeout: Hard deadline per transform request in seconds
        """
        super().__init__(model=model, request_timeout=timeout)
        if api_key:
            self.client = AsyncAnthropic(api_key=api_key, base_url=base_url, max_retries=0)

    async def _generate(self, prompt: str, config: PipelineConfig) -> str:
        create_params: dict[str, Any] = {
            "model": self.model,
            "system": config.system_instruction,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": DEFAULT_MAX_TOKENS,
        }
        if config.use_native_thinking:
            budget = max(config.thinking_budget, MIN_THINKING_BUDGET)
            # max_tokens must exceed the thinking budget; temperature must stay default
            create_params["thinking"] = {"type": "enabled", "budget_tokens": budget}
            create_params["max_tokens"] = budget + DEFAULT_MAX_TOKENS
        else:
            create_params["temperature"] = config.temperature

        response = await self.client.messages.create(**create_params)
        # Thinking blocks are skipped: only text blocks form the answer
        return "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )

    async def _ping(self, model: str) -> None:
        await self.client.messages.create(
            model=model,
            max_tokens=1,
            messages=[{"role": "user", "content": "ping"}],
        )
