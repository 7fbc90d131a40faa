"""Tests for LLM factory functions."""

from unittest.mock import patch

import pytest

from ledgerbot.config import LLMProvider as LLMProviderEnum
from ledgerbot.llm.anthropic import AnthropicProvider
from ledgerbot.llm.factory import (
    create_insight_provider,
    create_llm_provider,
    create_understanding_providers,
)
from ledgerbot.llm.ollama import OllamaProvider
from ledgerbot.llm.openai import OpenAIProvider


class TestLLMFactory:
    """Test LLM factory functions."""

    @patch("ledgerbot.llm.factory.get_settings")
    def test_create_ollama_provider(self, mock_get_settings):
        """Test creating Ollama provider."""
        mock_settings = mock_get_settings.return_value
        mock_settings.ollama_host = "http://test:11434"
        mock_settings.ollama_model = "llama3.2"

        provider = create_llm_provider(LLMProviderEnum.OLLAMA)
        assert isinstance(provider, OllamaProvider)
        assert provider.config.host == "http://test:11434"
        assert provider.config.model == "llama3.2"

    @patch("ledgerbot.llm.factory.get_settings")
    def test_create_openai_provider(self, mock_get_settings):
        """Test creating OpenAI provider."""
        mock_settings = mock_get_settings.return_value
        mock_settings.openai_api_key = "test-key"
        mock_settings.openai_model = "gpt-4o-mini"

        provider = create_llm_provider("openai")
        assert isinstance(provider, OpenAIProvider)
        assert provider.config.api_key == "test-key"

    @patch("ledgerbot.llm.factory.get_settings")
    def test_create_openai_provider_missing_key(self, mock_get_settings):
        """Test creating OpenAI provider without API key."""
        mock_settings = mock_get_settings.return_value
        mock_settings.openai_api_key = None

        with pytest.raises(ValueError, match="OpenAI API key is required"):
            create_llm_provider("openai")

    def test_create_unknown_provider(self):
        """Test that unknown names are rejected."""
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            create_llm_provider("watson")

    @patch("ledgerbot.llm.factory.get_settings")
    def test_understanding_providers_follow_configured_order(self, mock_get_settings):
        """Test backends are built in the configured order."""
        mock_settings = mock_get_settings.return_value
        mock_settings.understanding_backend_names = ["anthropic", "ollama"]
        mock_settings.anthropic_api_key = "test-key"
        mock_settings.anthropic_model = "claude-3-5-haiku-20241022"
        mock_settings.ollama_host = "http://test:11434"
        mock_settings.ollama_model = "llama3.2"

        providers = create_understanding_providers()

        assert [name for name, _ in providers] == ["anthropic", "ollama"]
        assert isinstance(providers[0][1], AnthropicProvider)
        assert isinstance(providers[1][1], OllamaProvider)

    @patch("ledgerbot.llm.factory.get_settings")
    def test_insight_provider_defaults_to_first_backend(self, mock_get_settings):
        """Test the insight provider falls back to the first understanding backend."""
        mock_settings = mock_get_settings.return_value
        mock_settings.insight_provider = None
        mock_settings.understanding_backend_names = ["ollama"]
        mock_settings.ollama_host = "http://test:11434"
        mock_settings.ollama_model = "llama3.2"

        assert isinstance(create_insight_provider(), OllamaProvider)

    @patch("ledgerbot.llm.factory.get_settings")
    def test_no_insight_provider_without_backends(self, mock_get_settings):
        """Test no insight provider is built when nothing is configured."""
        mock_settings = mock_get_settings.return_value
        mock_settings.insight_provider = None
        mock_settings.understanding_backend_names = []

        assert create_insight_provider() is None
