"""Tests for OpenAI provider."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from dso.config.settings import PipelineConfig
from dso.exceptions import AuthError
from dso.llm.openai import OpenAIProvider, _reasoning_effort


def _completion(content):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


class TestOpenAIProviderInit:
    """Tests for OpenAIProvider initialization."""

    def test_init_disables_sdk_retries(self):
        with patch("dso.llm.openai.AsyncOpenAI") as mock_client:
            provider = OpenAIProvider(api_key="sk-test", base_url="https://proxy.example/v1")

            assert provider.model == "gpt-4o-mini"
            mock_client.assert_called_once_with(
                api_key="sk-test", base_url="https://proxy.example/v1", max_retries=0
            )

    def test_init_without_key(self):
        with patch("dso.llm.openai.AsyncOpenAI") as mock_client:
            provider = OpenAIProvider()

            assert not provider.is_initialized
            mock_client.assert_not_called()


class TestOpenAIProviderTransform:
    """Tests for OpenAIProvider.transform."""

    @pytest.fixture
    def provider(self):
        with patch("dso.llm.openai.AsyncOpenAI"):
            provider = OpenAIProvider(api_key="sk-test")
        provider.client = MagicMock()
        return provider

    @pytest.mark.asyncio
    async def test_transform_success(self, provider):
        provider.client.chat.completions.create = AsyncMock(
            return_value=_completion("---REASONING---\nr\n---REWRITTEN---\nout")
        )
        config = PipelineConfig(temperature=0.2)

        result = await provider.transform("hey", config)

        assert result.output == "out"
        call_kwargs = provider.client.chat.completions.create.call_args.kwargs
        assert call_kwargs["model"] == "gpt-4o-mini"
        assert call_kwargs["temperature"] == 0.2
        assert "reasoning_effort" not in call_kwargs
        assert call_kwargs["messages"][0] == {"role": "system", "content": config.system_instruction}
        assert call_kwargs["messages"][1]["role"] == "user"
        assert "hey" in call_kwargs["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_transform_native_thinking(self, provider):
        provider.client.chat.completions.create = AsyncMock(return_value=_completion("out"))

        await provider.transform("hey", PipelineConfig(use_native_thinking=True, thinking_budget=4096))

        call_kwargs = provider.client.chat.completions.create.call_args.kwargs
        assert call_kwargs["reasoning_effort"] == "medium"
        assert "temperature" not in call_kwargs

    @pytest.mark.asyncio
    async def test_transform_none_content(self, provider):
        provider.client.chat.completions.create = AsyncMock(return_value=_completion(None))

        result = await provider.transform("hey", PipelineConfig())

        assert result.output == ""

    @pytest.mark.asyncio
    async def test_transform_auth_error(self, provider):
        error = Exception("Incorrect API key provided")
        error.status_code = 401
        provider.client.chat.completions.create = AsyncMock(side_effect=error)

        with pytest.raises(AuthError):
            await provider.transform("hey", PipelineConfig())

    @pytest.mark.asyncio
    async def test_validate_retrieves_model(self, provider):
        provider.client.models.retrieve = AsyncMock(return_value=MagicMock())

        assert await provider.validate("gpt-4o") is True
        provider.client.models.retrieve.assert_awaited_once_with("gpt-4o")


class TestReasoningEffort:
    """Tests for the budget to effort mapping."""

    @pytest.mark.parametrize(
        ("budget", "effort"),
        [(0, "low"), (1024, "low"), (1025, "medium"), (8192, "medium"), (16384, "high")],
    )
    def test_mapping(self, budget, effort):
        assert _reasoning_effort(budget) == effort
