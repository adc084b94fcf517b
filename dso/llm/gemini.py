"""Google Gemini provider implementation."""

from google import genai
from google.genai import types

from dso.config.constants import DEFAULT_MODELS, REQUEST_TIMEOUT_SECONDS
from dso.config.settings import PipelineConfig
from dso.llm.base import BaseProvider


class GeminiProvider(BaseProvider):
    """Google Gemini API provider using the official SDK."""

    name = "gemini"
    display_name = "Google Gemini"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODELS["gemini"],
        base_url: str | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize Gemini provider.

        Args:
            api_key: Google API key; without one the provider stays uninitialized
            model: Model to use (default: gemini-2.5-flash)
            base_url: Optional custom endpoint (proxies, enterprise gateways)
            timeout: Hard deadline per transform request in seconds
        """
        super().__init__(model=model, request_timeout=timeout)
        if not api_key:
            return
        if base_url:
            self.client = genai.Client(
                api_key=api_key, http_options=types.HttpOptions(base_url=base_url)
            )
        else:
            self.client = genai.Client(api_key=api_key)

    async def _generate(self, prompt: str, config: PipelineConfig) -> str:
        thinking_config = None
        if config.use_native_thinking:
            thinking_config = types.ThinkingConfig(thinking_budget=config.thinking_budget)

        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                temperature=config.temperature,
                system_instruction=config.system_instruction,
                thinking_config=thinking_config,
            ),
        )
        return response.text or ""

    async def _ping(self, model: str) -> None:
        await self.client.aio.models.generate_content(
            model=model,
            contents="ping",
            config=types.GenerateContentConfig(max_output_tokens=1),
        )
