"""Google Gemini LLM provider implementation."""

import logging
from typing import Any

import google.generativeai as genai
from pydantic import BaseModel

from ledgerbot.llm.base import LLMProvider, ResponseResult

logger = logging.getLogger(__name__)


class GeminiConfig(BaseModel):
    """Configuration for Gemini provider."""

    api_key: str
    model: str = "gemini-1.5-flash"
    max_tokens: int = 1000
    temperature: float = 0.1
    timeout: int = 30


class GeminiProvider(LLMProvider):
    """Google Gemini LLM provider implementation."""

    def __init__(self, config: GeminiConfig | None = None, **kwargs: Any) -> None:
        """Initialize Gemini provider.

        Args:
            config: Gemini configuration
            **kwargs: Additional configuration options
        """
        self.config = config or GeminiConfig(**kwargs)
        genai.configure(api_key=self.config.api_key)
        self.model = genai.GenerativeModel(self.config.model)

    async def generate_response(
        self,
        prompt: str,
        context: str | None = None,
        system_prompt: str | None = None,
        json_mode: bool = False,
    ) -> ResponseResult:
        """Generate response using Gemini's chat model.

        Args:
            prompt: User prompt or question
            context: Optional context information
            system_prompt: Optional instructions prepended to the prompt
            json_mode: Request an ``application/json`` response

        Returns:
            ResponseResult with generated response
        """
        full_prompt = prompt
        if context:
            full_prompt = f"Context: {context}\n\nQuestion: {prompt}"
        if system_prompt:
            full_prompt = f"{system_prompt}\n\n{full_prompt}"

        generation_config = genai.types.GenerationConfig(
            max_output_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            response_mime_type="application/json" if json_mode else None,
        )

        try:
            response = await self.model.generate_content_async(
                full_prompt,
                generation_config=generation_config,
            )

            return ResponseResult(
                content=response.text,
                model=self.config.model,
                token_count=response.usage_metadata.total_token_count
                if response.usage_metadata
                else None,
                finish_reason=response.candidates[0].finish_reason.name
                if response.candidates
                else None,
            )

        except Exception as e:
            logger.error(f"Gemini response request failed: {e}")
            raise RuntimeError(f"Failed to generate response: {e}")

    async def health_check(self) -> bool:
        """Check if Gemini service is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            genai.get_model(f"models/{self.config.model}")
            return True
        except Exception as e:
            logger.warning(f"Gemini health check failed: {e}")
            return False
