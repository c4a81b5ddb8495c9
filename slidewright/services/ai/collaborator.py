"""
Provider-backed slide collaborator.
"""
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import structlog

from slidewright.core.config import get_settings
from slidewright.core.exceptions import CollaboratorError
from slidewright.domain.schemas.layout import LayoutIssue
from slidewright.services.ai.anthropic_provider import AnthropicProvider
from slidewright.services.ai.base import (
    AIProvider,
    AIProviderBase,
    AIProviderError,
    AIResponse,
    CollaboratorResponse,
    ContentType,
    ModelCapability,
    SlideCollaborator,
)
from slidewright.services.ai.openai_provider import OpenAIProvider
from slidewright.services.ai.prompt_manager import PromptManager

logger = structlog.get_logger(__name__)
settings = get_settings()


class AICollaborator(SlideCollaborator):
    """
    Builds prompts from the prompt catalogue and runs them against the
    configured providers in fallback order.

    With ``stream_edits`` enabled, slide edits are returned as a stream of
    text deltas from the first available provider instead of a full string.
    """

    def __init__(
        self,
        providers: Optional[Dict[AIProvider, AIProviderBase]] = None,
        prompt_manager: Optional[PromptManager] = None,
        provider_order: Optional[List[AIProvider]] = None,
        stream_edits: bool = False,
    ):
        self.prompt_manager = prompt_manager or PromptManager()
        self.stream_edits = stream_edits

        if providers is None:
            providers = {}
            if settings.ANTHROPIC_API_KEY:
                providers[AIProvider.ANTHROPIC] = AnthropicProvider()
            if settings.OPENAI_API_KEY:
                providers[AIProvider.OPENAI] = OpenAIProvider()
        self.providers = providers

        # Fallback order
        self.provider_order = provider_order or [AIProvider.ANTHROPIC, AIProvider.OPENAI]

    async def generate(
        self,
        content: str,
        instruction: str,
        issues: Sequence[LayoutIssue],
    ) -> CollaboratorResponse:
        prompt = self.prompt_manager.build_edit_prompt(content, instruction, issues)
        if self.stream_edits:
            return self._stream_with_primary(prompt, max_tokens=settings.AI_SLIDE_MAX_TOKENS)

        response = await self._generate_with_fallback(
            prompt, ContentType.SLIDE_EDIT, max_tokens=settings.AI_SLIDE_MAX_TOKENS
        )
        return response.content

    async def fix_layout(self, content: str, issues: Sequence[LayoutIssue]) -> CollaboratorResponse:
        prompt = self.prompt_manager.build_layout_fix_prompt(content, issues)
        response = await self._generate_with_fallback(
            prompt, ContentType.LAYOUT_FIX, max_tokens=settings.AI_SLIDE_MAX_TOKENS
        )
        return response.content

    async def generate_deck(
        self,
        topic: str,
        slide_count: int,
        language: str,
        style: str,
        include_notes: bool,
    ) -> CollaboratorResponse:
        prompt = self.prompt_manager.build_deck_prompt(topic, slide_count, language, style, include_notes)
        response = await self._generate_with_fallback(prompt, ContentType.DECK_GENERATION)
        return response.content

    async def generate_diagram(self, description: str, diagram_type: str) -> CollaboratorResponse:
        prompt = self.prompt_manager.build_diagram_prompt(description, diagram_type)
        response = await self._generate_with_fallback(
            prompt, ContentType.DIAGRAM, system=None, temperature=0.3
        )
        return response.content

    async def generate_image_reference(self, prompt: str) -> CollaboratorResponse:
        image_providers = [
            self.providers[name] for name in self.provider_order
            if name in self.providers
            and self.providers[name].supports_capability(ModelCapability.IMAGE_GENERATION)
        ]
        if not image_providers:
            raise CollaboratorError("No provider supports image generation")

        enhanced_prompt = self.prompt_manager.build_image_prompt(prompt)
        return await image_providers[0].generate_image(enhanced_prompt)

    async def split(self, content: str, issues: Sequence[LayoutIssue]) -> CollaboratorResponse:
        prompt = self.prompt_manager.build_split_prompt(content, issues)
        response = await self._generate_with_fallback(prompt, ContentType.SLIDE_SPLIT)
        return response.content

    def _available_providers(self) -> List[AIProviderBase]:
        return [self.providers[name] for name in self.provider_order if name in self.providers]

    async def _generate_with_fallback(
        self,
        prompt: str,
        content_type: ContentType,
        **kwargs
    ) -> AIResponse:
        """Generate with provider fallback."""
        providers = self._available_providers()
        if not providers:
            raise CollaboratorError("No AI providers configured")

        kwargs.setdefault("system", self.prompt_manager.system_prompt)
        kwargs.setdefault("temperature", settings.AI_TEMPERATURE)

        last_error: Optional[Exception] = None
        for provider in providers:
            try:
                return await provider.generate(prompt, **kwargs)
            except AIProviderError as e:
                logger.error(
                    "provider_failed",
                    provider=provider.provider.value,
                    content_type=content_type.value,
                    error=str(e),
                )
                last_error = e

        raise AIProviderError("All AI providers failed") from last_error

    async def _stream_with_primary(self, prompt: str, **kwargs) -> AsyncIterator[Any]:
        providers = self._available_providers()
        if not providers:
            raise CollaboratorError("No AI providers configured")

        primary = providers[0]
        logger.debug("slide_edit_streaming", provider=primary.provider.value)
        async for event in primary.stream_generate(
            prompt,
            system=self.prompt_manager.system_prompt,
            temperature=settings.AI_TEMPERATURE,
            **kwargs
        ):
            yield event
