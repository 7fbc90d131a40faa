"""LLM providers module."""

from ledgerbot.llm.anthropic import AnthropicConfig, AnthropicProvider
from ledgerbot.llm.base import LLMProvider, LLMProviderFactory, ResponseResult
from ledgerbot.llm.factory import (
    create_insight_provider,
    create_llm_provider,
    create_understanding_providers,
)
from ledgerbot.llm.gemini import GeminiConfig, GeminiProvider
from ledgerbot.llm.ollama import OllamaConfig, OllamaProvider
from ledgerbot.llm.openai import OpenAIConfig, OpenAIProvider

# Register all providers
LLMProviderFactory.register("ollama", OllamaProvider)
LLMProviderFactory.register("openai", OpenAIProvider)
LLMProviderFactory.register("gemini", GeminiProvider)
LLMProviderFactory.register("anthropic", AnthropicProvider)

__all__ = [
    "AnthropicConfig",
    "AnthropicProvider",
    "GeminiConfig",
    "GeminiProvider",
    "LLMProvider",
    "LLMProviderFactory",
    "OllamaConfig",
    "OllamaProvider",
    "OpenAIConfig",
    "OpenAIProvider",
    "ResponseResult",
    "create_insight_provider",
    "create_llm_provider",
    "create_understanding_providers",
]
