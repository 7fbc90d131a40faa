"""Anthropic Claude LLM provider implementation."""

import logging
from typing import Any

import anthropic
from pydantic import BaseModel

from ledgerbot.llm.base import LLMProvider, ResponseResult

logger = logging.getLogger(__name__)


class AnthropicConfig(BaseModel):
    """Configuration for Anthropic provider."""

    api_key: str
    model: str = "claude-3-5-haiku-20241022"
    max_tokens: int = 1000
    temperature: float = 0.1
    timeout: int = 30


class AnthropicProvider(LLMProvider):
    """Anthropic Claude LLM provider implementation."""

    def __init__(self, config: AnthropicConfig | None = None, **kwargs: Any) -> None:
        """Initialize Anthropic provider.

        Args:
            config: Anthropic configuration
            **kwargs: Additional configuration options
        """
        self.config = config or AnthropicConfig(**kwargs)
        self.client = anthropic.AsyncAnthropic(
            api_key=self.config.api_key,
            timeout=self.config.timeout,
        )

    async def generate_response(
        self,
        prompt: str,
        context: str | None = None,
        system_prompt: str | None = None,
        json_mode: bool = False,
    ) -> ResponseResult:
        """Generate response using Anthropic's Claude model.

        Claude has no dedicated JSON mode, so ``json_mode`` adds an instruction
        to the system prompt instead.

        Args:
            prompt: User prompt or question
            context: Optional context information
            system_prompt: Optional system instructions
            json_mode: Ask for a bare JSON object

        Returns:
            ResponseResult with generated response
        """
        if context:
            content = f"Context: {context}\n\nQuestion: {prompt}"
        else:
            content = prompt

        system = system_prompt or ""
        if json_mode:
            system = f"{system}\n\nRespond with a single JSON object and nothing else.".strip()

        request: dict[str, Any] = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "messages": [{"role": "user", "content": content}],
        }
        if system:
            request["system"] = system

        try:
            response = await self.client.messages.create(**request)

            # Anthropic returns content as a list of blocks
            text = ""
            for block in response.content:
                if block.type == "text":
                    text += block.text

            return ResponseResult(
                content=text,
                model=self.config.model,
                token_count=response.usage.output_tokens + response.usage.input_tokens,
                finish_reason=response.stop_reason,
            )

        except anthropic.AnthropicError as e:
            logger.error(f"Anthropic response request failed: {e}")
            raise RuntimeError(f"Failed to generate response: {e}")

    async def health_check(self) -> bool:
        """Check if Anthropic service is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            await self.client.messages.create(
                model=self.config.model,
                max_tokens=10,
                messages=[{"role": "user", "content": "Hi"}],
            )
            return True
        except Exception as e:
            logger.warning(f"Anthropic health check failed: {e}")
            return False
