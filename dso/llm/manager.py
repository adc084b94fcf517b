"""Provider construction from configuration."""

from dso.config.settings import ProviderConfig
from dso.llm.base import BaseProvider
from dso.utils.logging import get_logger

log = get_logger(__name__)


def create_provider(config: ProviderConfig) -> BaseProvider:
    """Create the configured provider instance.

    A provider created without an API key is returned uninitialized; the
    engine reports that before dispatching anything.
    """
    api_key = config.resolve_api_key()
    model = config.effective_model

    if config.provider == "gemini":
        from dso.llm.gemini import GeminiProvider

        provider: BaseProvider = GeminiProvider(
            api_key=api_key,
            model=model,
            base_url=config.base_url,
            timeout=config.timeout,
        )

    elif config.provider == "openai":
        from dso.llm.openai import OpenAIProvider

        provider = OpenAIProvider(
            api_key=api_key,
            model=model,
            base_url=config.base_url,
            timeout=config.timeout,
        )

    elif config.provider == "anthropic":
        from dso.llm.anthropic import AnthropicProvider

        provider = AnthropicProvider(
            api_key=api_key,
            model=model,
            base_url=config.base_url,
            timeout=config.timeout,
        )

    elif config.provider == "mock":
        from dso.llm.mock import MockProvider

        provider = MockProvider(model=model, timeout=config.timeout)

    else:
        raise ValueError(f"Unknown provider: {config.provider}")

    log.debug(
        "Provider created",
        provider=config.provider,
        model=model,
        initialized=provider.is_initialized,
    )
    return provider
