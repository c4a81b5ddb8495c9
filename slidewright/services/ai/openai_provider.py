"""
OpenAI GPT provider implementation.
"""
import time
from typing import Any, AsyncIterator, Optional

import openai
import structlog
from openai import AsyncOpenAI

from slidewright.core.config import get_settings
from slidewright.services.ai.base import (
    AIProvider,
    AIProviderBase,
    AIProviderError,
    AIResponse,
    ModelCapability,
    RateLimitError,
    TokenUsage,
)

logger = structlog.get_logger(__name__)
settings = get_settings()


class OpenAIProvider(AIProviderBase):
    """OpenAI GPT provider, also used for image generation."""

    def __init__(self, api_key: Optional[str] = None, client: Optional[AsyncOpenAI] = None):
        super().__init__(api_key or settings.OPENAI_API_KEY)
        self.provider = AIProvider.OPENAI
        self.client = client or AsyncOpenAI(api_key=self.api_key, base_url=settings.OPENAI_BASE_URL)

        self.capabilities = [
            ModelCapability.TEXT_GENERATION,
            ModelCapability.IMAGE_GENERATION,
            ModelCapability.STREAMING,
        ]

        self.default_model = settings.AI_MODEL_FALLBACK
        self.image_model = settings.AI_IMAGE_MODEL

        # Pricing per 1M tokens
        self.pricing = {
            "gpt-4o": {"input": 2.5, "output": 10.0},
            "gpt-4o-mini": {"input": 0.15, "output": 0.6},
            "gpt-4-turbo": {"input": 10.0, "output": 30.0},
        }

    async def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: float = 0.7,
        system: Optional[str] = None,
        **kwargs
    ) -> AIResponse:
        """Generate text completion using GPT."""
        model = model or self.default_model
        max_tokens = max_tokens or settings.AI_MAX_TOKENS

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            start_time = time.time()
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
                **kwargs
            )
            latency_ms = int((time.time() - start_time) * 1000)
        except openai.RateLimitError as e:
            logger.error("openai_rate_limit", error=str(e))
            raise RateLimitError(f"OpenAI rate limit exceeded: {e}", self.provider) from e
        except openai.OpenAIError as e:
            logger.error("openai_generation_error", error=str(e))
            raise AIProviderError(str(e), self.provider) from e

        content = response.choices[0].message.content or ""

        usage = TokenUsage(
            prompt_tokens=response.usage.prompt_tokens,
            completion_tokens=response.usage.completion_tokens,
            total_tokens=response.usage.total_tokens,
            estimated_cost=self.estimate_cost(
                response.usage.prompt_tokens,
                response.usage.completion_tokens,
                model
            )
        )

        logger.info(
            "openai_generation_complete",
            model=model,
            tokens=usage.total_tokens,
            latency_ms=latency_ms,
            cost=usage.estimated_cost
        )

        return AIResponse(
            content=content,
            provider=self.provider,
            model=model,
            usage=usage,
            latency_ms=latency_ms,
            metadata={
                "completion_id": response.id,
                "finish_reason": response.choices[0].finish_reason
            }
        )

    async def stream_generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        **kwargs
    ) -> AsyncIterator[Any]:
        """Stream generation for real-time output."""
        model = model or self.default_model

        messages = [{"role": "user", "content": prompt}]
        system = kwargs.pop("system", None)
        if system:
            messages.insert(0, {"role": "system", "content": system})

        try:
            stream = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                stream=True,
                **kwargs
            )

            chunk_count = 0
            async for chunk in stream:
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                if choice.delta.content:
                    chunk_count += 1
                    yield choice.delta.content
                elif choice.finish_reason:
                    yield {
                        "type": "complete",
                        "finish_reason": choice.finish_reason,
                        "chunk_count": chunk_count,
                    }
        except openai.RateLimitError as e:
            logger.error("openai_rate_limit", error=str(e))
            raise RateLimitError(f"OpenAI rate limit exceeded: {e}", self.provider) from e
        except openai.OpenAIError as e:
            logger.error("openai_stream_error", error=str(e))
            raise AIProviderError(str(e), self.provider) from e

    async def generate_image(
        self,
        prompt: str,
        size: str = "1024x1024",
        quality: str = "standard",
        style: str = "vivid",
        **kwargs
    ) -> str:
        """Generate one image and return its URL."""
        try:
            response = await self.client.images.generate(
                model=self.image_model,
                prompt=prompt,
                n=1,
                size=size,
                quality=quality,
                style=style,
                response_format="url",
            )
        except openai.RateLimitError as e:
            logger.error("openai_rate_limit", error=str(e))
            raise RateLimitError(f"OpenAI rate limit exceeded: {e}", self.provider) from e
        except openai.OpenAIError as e:
            logger.error("openai_image_error", error=str(e))
            raise AIProviderError(str(e), self.provider) from e

        url = response.data[0].url if response.data else None
        if not url:
            raise AIProviderError("No image URL in response", self.provider)

        logger.info("openai_image_generated", model=self.image_model, size=size)
        return url
