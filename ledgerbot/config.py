"""Configuration management using pydantic-settings."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMProvider(str, Enum):
    """Supported LLM providers."""

    OLLAMA = "ollama"
    OPENAI = "openai"
    GEMINI = "gemini"
    ANTHROPIC = "anthropic"


class Environment(str, Enum):
    """Application environments."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Understanding backends, tried in this order before the rule-based fallback
    understanding_backends: str = Field(
        default="openai,gemini",
        description="Comma-separated, ordered list of LLM providers used for query understanding",
    )
    insight_provider: LLMProvider | None = Field(
        default=None,
        description="Provider used for sales/purchase business insights, defaults to the first backend",
    )

    # Ollama Configuration
    ollama_host: str = Field(
        default="http://localhost:11434",
        description="Ollama API host URL",
    )
    ollama_model: str = Field(
        default="llama3.2",
        description="Ollama model to use",
    )

    # OpenAI Configuration
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI chat model to use",
    )

    # Google Gemini Configuration
    gemini_api_key: str | None = Field(
        default=None,
        description="Google Gemini API key",
    )
    gemini_model: str = Field(
        default="gemini-1.5-flash",
        description="Google Gemini model to use",
    )

    # Anthropic Configuration
    anthropic_api_key: str | None = Field(
        default=None,
        description="Anthropic API key",
    )
    anthropic_model: str = Field(
        default="claude-3-5-haiku-20241022",
        description="Anthropic model to use",
    )

    # Accounting bridge (Tally ODBC proxy running next to the desktop shell)
    bridge_url: str | None = Field(
        default=None,
        description="Base URL of the accounting bridge, e.g. http://localhost:8765",
    )
    bridge_token: str | None = Field(
        default=None,
        description="Bearer token sent to the accounting bridge",
    )

    # Replicated transaction store
    supabase_url: str | None = Field(
        default=None,
        description="Supabase project URL holding replicated ledger and voucher tables",
    )
    supabase_key: str | None = Field(
        default=None,
        description="Supabase service key",
    )

    # Timeouts
    source_timeout_seconds: float = Field(
        default=30.0,
        description="Upper bound for a single accounting source read",
    )
    understanding_timeout_seconds: float = Field(
        default=30.0,
        description="Upper bound for a single understanding backend call",
    )

    # Conversation state and caching
    context_ttl_minutes: int = Field(
        default=10,
        description="Minutes a conversation context stays alive after its last update",
    )
    context_sweep_interval_minutes: int = Field(
        default=5,
        description="Minutes between sweeps of expired contexts and cache entries",
    )
    cache_max_entries: int | None = Field(
        default=1000,
        description="Maximum cached responses before least recently used entries are evicted",
    )
    cache_ttl_minutes: int | None = Field(
        default=None,
        description="Optional lifetime of cached responses; unset keeps entries until cleared",
    )

    # Display
    display_utc_offset_minutes: int = Field(
        default=330,
        description="UTC offset used for the last-synced stamp",
    )
    display_timezone_label: str = Field(
        default="IST",
        description="Label printed after the last-synced stamp",
    )

    # Web server
    web_host: str = Field(
        default="0.0.0.0",
        description="Host interface for the HTTP server",
    )
    web_port: int = Field(
        default=3000,
        description="Port for the HTTP server",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )

    @property
    def understanding_backend_names(self) -> list[str]:
        """Get the ordered list of configured understanding backends."""
        return [
            name.strip().lower()
            for name in self.understanding_backends.split(",")
            if name.strip()
        ]

    def validate_provider_config(self) -> None:
        """Validate that every configured backend is known and has its API key set."""
        known = {provider.value for provider in LLMProvider}

        for name in self.understanding_backend_names:
            if name not in known:
                raise ValueError(f"Unknown understanding backend: {name}")
            if name == LLMProvider.OPENAI and not self.openai_api_key:
                raise ValueError("OpenAI API key is required when using OpenAI provider")
            elif name == LLMProvider.GEMINI and not self.gemini_api_key:
                raise ValueError("Gemini API key is required when using Gemini provider")
            elif name == LLMProvider.ANTHROPIC and not self.anthropic_api_key:
                raise ValueError("Anthropic API key is required when using Anthropic provider")


# Global settings instance - lazy loaded
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
