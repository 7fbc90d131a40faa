"""Factory for creating LLM providers from configuration."""

from ledgerbot.config import LLMProvider as LLMProviderEnum
from ledgerbot.config import get_settings
from ledgerbot.llm.base import LLMProvider, LLMProviderFactory


def create_llm_provider(provider_name: str) -> LLMProvider:
    """Create LLM provider from configuration.

    Args:
        provider_name: Provider to build, one of the ``LLMProvider`` values

    Returns:
        Configured LLM provider instance

    Raises:
        ValueError: If provider configuration is invalid
    """
    settings = get_settings()

    # Build provider-specific config
    if provider_name == LLMProviderEnum.OLLAMA:
        from ledgerbot.llm.ollama import OllamaConfig

        config = OllamaConfig(
            host=settings.ollama_host,
            model=settings.ollama_model,
        )
        return LLMProviderFactory.create("ollama", config=config)

    elif provider_name == LLMProviderEnum.OPENAI:
        from ledgerbot.llm.openai import OpenAIConfig

        if not settings.openai_api_key:
            raise ValueError("OpenAI API key is required")

        config = OpenAIConfig(api_key=settings.openai_api_key, model=settings.openai_model)
        return LLMProviderFactory.create("openai", config=config)

    elif provider_name == LLMProviderEnum.GEMINI:
        from ledgerbot.llm.gemini import GeminiConfig

        if not settings.gemini_api_key:
            raise ValueError("Gemini API key is required")

        config = GeminiConfig(api_key=settings.gemini_api_key, model=settings.gemini_model)
        return LLMProviderFactory.create("gemini", config=config)

    elif provider_name == LLMProviderEnum.ANTHROPIC:
        from ledgerbot.llm.anthropic import AnthropicConfig

        if not settings.anthropic_api_key:
            raise ValueError("Anthropic API key is required")

        config = AnthropicConfig(
            api_key=settings.anthropic_api_key, model=settings.anthropic_model
        )
        return LLMProviderFactory.create("anthropic", config=config)

    else:
        raise ValueError(f"Unknown LLM provider: {provider_name}")


def create_understanding_providers() -> list[tuple[str, LLMProvider]]:
    """Create every configured understanding backend provider, in order.

    Returns:
        (name, provider) pairs following ``settings.understanding_backends``

    Raises:
        ValueError: If a configured backend is unknown or lacks credentials
    """
    settings = get_settings()
    return [(name, create_llm_provider(name)) for name in settings.understanding_backend_names]


def create_insight_provider() -> LLMProvider | None:
    """Create the provider used for sales insight answers.

    Falls back to the first understanding backend when no insight provider is
    set. Returns None when neither is configured.
    """
    settings = get_settings()
    if settings.insight_provider:
        return create_llm_provider(settings.insight_provider)
    names = settings.understanding_backend_names
    if not names:
        return None
    return create_llm_provider(names[0])
