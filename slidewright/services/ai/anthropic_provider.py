"""
Anthropic Claude provider implementation.
"""
import time
from typing import Any, AsyncIterator, Optional

import anthropic
import structlog
from anthropic import AsyncAnthropic

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


class AnthropicProvider(AIProviderBase):
    """Anthropic Claude provider."""

    def __init__(self, api_key: Optional[str] = None, client: Optional[AsyncAnthropic] = None):
        super().__init__(api_key or settings.ANTHROPIC_API_KEY)
        self.provider = AIProvider.ANTHROPIC
        self.client = client or AsyncAnthropic(api_key=self.api_key)

        self.capabilities = [
            ModelCapability.TEXT_GENERATION,
            ModelCapability.STREAMING,
        ]

        self.default_model = settings.AI_MODEL_PRIMARY

        # Pricing per 1M tokens
        self.pricing = {
            "claude-3-5-sonnet-20241022": {"input": 3.0, "output": 15.0},
            "claude-3-5-haiku-20241022": {"input": 0.8, "output": 4.0},
            "claude-3-opus-20240229": {"input": 15.0, "output": 75.0},
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
        """Generate text completion using Claude."""
        model = model or self.default_model
        max_tokens = max_tokens or settings.AI_MAX_TOKENS

        request = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
            **kwargs,
        }
        if system:
            request["system"] = system

        try:
            start_time = time.time()
            response = await self.client.messages.create(**request)
            latency_ms = int((time.time() - start_time) * 1000)
        except anthropic.RateLimitError as e:
            logger.error("anthropic_rate_limit", error=str(e))
            raise RateLimitError(f"Anthropic rate limit exceeded: {e}", self.provider) from e
        except anthropic.APIError as e:
            logger.error("anthropic_generation_error", error=str(e))
            raise AIProviderError(str(e), self.provider) from e

        content = "".join(
            block.text for block in response.content if getattr(block, "type", "text") == "text"
        )

        usage = TokenUsage(
            prompt_tokens=response.usage.input_tokens,
            completion_tokens=response.usage.output_tokens,
            total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            estimated_cost=self.estimate_cost(
                response.usage.input_tokens,
                response.usage.output_tokens,
                model
            )
        )

        logger.info(
            "anthropic_generation_complete",
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
            metadata={"message_id": response.id, "stop_reason": response.stop_reason}
        )

    async def stream_generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        **kwargs
    ) -> AsyncIterator[Any]:
        """Stream generation for real-time output."""
        model = model or self.default_model

        request = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": kwargs.get("max_tokens") or settings.AI_MAX_TOKENS,
            "temperature": kwargs.get("temperature", settings.AI_TEMPERATURE),
        }
        if kwargs.get("system"):
            request["system"] = kwargs["system"]

        try:
            async with self.client.messages.stream(**request) as stream:
                async for text in stream.text_stream:
                    yield text
                final = await stream.get_final_message()
        except anthropic.RateLimitError as e:
            logger.error("anthropic_rate_limit", error=str(e))
            raise RateLimitError(f"Anthropic rate limit exceeded: {e}", self.provider) from e
        except anthropic.APIError as e:
            logger.error("anthropic_stream_error", error=str(e))
            raise AIProviderError(str(e), self.provider) from e

        yield {
            "type": "usage",
            "usage": {
                "input_tokens": final.usage.input_tokens,
                "output_tokens": final.usage.output_tokens,
                "total_tokens": final.usage.input_tokens + final.usage.output_tokens,
            }
        }
