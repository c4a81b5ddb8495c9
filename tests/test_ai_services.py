"""
Tests for AI service components: prompts, providers and the collaborator.
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from slidewright.core.exceptions import CollaboratorError
from slidewright.domain.schemas.layout import IssueSeverity, LayoutIssue, LayoutIssueType
from slidewright.services.ai.anthropic_provider import AnthropicProvider
from slidewright.services.ai.base import (
    AIProvider,
    AIProviderError,
    AIResponse,
    ContentType,
    ModelCapability,
    ModelNotAvailableError,
    PromptTemplate,
    RateLimitError,
    TokenUsage,
)
from slidewright.services.ai.collaborator import AICollaborator
from slidewright.services.ai.openai_provider import OpenAIProvider
from slidewright.services.ai.prompt_manager import PromptManager


@pytest.fixture
def bullet_issue():
    return LayoutIssue(
        type=LayoutIssueType.TOO_MANY_BULLETS,
        message="Slide has 10 bullet points (max recommended: 6)",
        severity=IssueSeverity.ERROR,
        slide_index=0,
        suggestion="Consolidate bullet points",
        meta={"bulletCount": 10},
    )


def ai_response(content: str, provider: AIProvider = AIProvider.ANTHROPIC) -> AIResponse:
    return AIResponse(
        content=content,
        provider=provider,
        model="test-model",
        usage=TokenUsage(prompt_tokens=10, completion_tokens=5, total_tokens=15, estimated_cost=0.0),
        latency_ms=1,
    )


def mock_provider(provider: AIProvider, **methods):
    instance = MagicMock()
    instance.provider = provider
    instance.generate = AsyncMock(**methods)
    return instance


class TestPromptManager:
    """Test prompt catalogue."""

    @pytest.fixture
    def manager(self):
        return PromptManager()

    def test_edit_prompt_without_issues(self, manager):
        prompt = manager.build_edit_prompt("# Old", "Make it punchier", [])
        assert "# Old" in prompt
        assert "Make it punchier" in prompt
        assert "Layout Issues to Fix" not in prompt

    def test_edit_prompt_lists_issues(self, manager, bullet_issue):
        prompt = manager.build_edit_prompt("# Old", "Shorten", [bullet_issue])
        assert "Layout Issues to Fix" in prompt
        assert "- too-many-bullets: Slide has 10 bullet points" in prompt
        assert "(Suggestion: Consolidate bullet points)" in prompt

    def test_layout_fix_prompt_includes_counts(self, manager, bullet_issue):
        prompt = manager.build_layout_fix_prompt("# Old", [bullet_issue])
        assert "too-many-bullets (error)" in prompt
        assert "[10 bullets]" in prompt

    def test_content_with_braces_is_safe(self, manager):
        prompt = manager.build_edit_prompt("const x = {a: 1}", "Explain {this}", [])
        assert "const x = {a: 1}" in prompt

    def test_deck_prompt(self, manager):
        prompt = manager.build_deck_prompt("Rust ownership", 8, "en", "technical", True)
        assert 'Create a 8-slide presentation about: "Rust ownership"' in prompt
        assert "<!-- notes -->" in prompt

    def test_diagram_prompt_guides(self, manager):
        prompt = manager.build_diagram_prompt("Login flow", "sequence")
        assert "sequenceDiagram" in prompt

    def test_register_override_bumps_version(self, manager):
        manager.register_prompt(PromptTemplate(
            id="custom_split",
            name="Custom Split",
            content_type=ContentType.SLIDE_SPLIT,
            template="Split: {content} | {issues}",
            variables=["content", "issues"],
        ))
        assert manager.get_prompt(ContentType.SLIDE_SPLIT).version == 2
        assert manager.build_split_prompt("X", []) == "Split: X | "

        manager.reset(ContentType.SLIDE_SPLIT)
        assert manager.get_prompt(ContentType.SLIDE_SPLIT).id == "default_slide_split"

    def test_missing_variable(self, manager):
        with pytest.raises(KeyError):
            manager.get_prompt(ContentType.IMAGE).format()


class TestAnthropicProvider:

    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=SimpleNamespace(
            id="msg_1",
            stop_reason="end_turn",
            content=[SimpleNamespace(type="text", text="# Slide")],
            usage=SimpleNamespace(input_tokens=100, output_tokens=20),
        ))
        return client

    @pytest.mark.asyncio
    async def test_generate(self, client):
        provider = AnthropicProvider(api_key="test-key", client=client)
        response = await provider.generate("prompt", system="be terse")

        assert response.content == "# Slide"
        assert response.usage.total_tokens == 120
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "be terse"
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    @pytest.mark.asyncio
    async def test_system_omitted_when_absent(self, client):
        provider = AnthropicProvider(api_key="test-key", client=client)
        await provider.generate("prompt")
        assert "system" not in client.messages.create.call_args.kwargs

    @pytest.mark.asyncio
    async def test_rate_limit_is_wrapped(self, client):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        client.messages.create.side_effect = anthropic.RateLimitError(
            "slow down",
            response=httpx.Response(429, request=request),
            body=None,
        )
        provider = AnthropicProvider(api_key="test-key", client=client)

        with pytest.raises(RateLimitError) as exc_info:
            await provider.generate("prompt")
        assert isinstance(exc_info.value, CollaboratorError)
        assert exc_info.value.provider == AIProvider.ANTHROPIC

    @pytest.mark.asyncio
    async def test_image_generation_not_supported(self, client):
        provider = AnthropicProvider(api_key="test-key", client=client)
        assert not provider.supports_capability(ModelCapability.IMAGE_GENERATION)
        with pytest.raises(ModelNotAvailableError):
            await provider.generate_image("a chart")

    def test_estimate_cost(self, client):
        provider = AnthropicProvider(api_key="test-key", client=client)
        assert provider.estimate_cost(1_000_000, 0, "claude-3-5-sonnet-20241022") == 3.0
        assert provider.estimate_cost(10, 10, "unknown-model") == 0.0


class TestOpenAIProvider:

    @pytest.mark.asyncio
    async def test_generate_image(self):
        client = MagicMock()
        client.images.generate = AsyncMock(return_value=SimpleNamespace(
            data=[SimpleNamespace(url="https://img.example.com/1.png")]
        ))
        provider = OpenAIProvider(api_key="test-key", client=client)

        url = await provider.generate_image("a lighthouse")
        assert url == "https://img.example.com/1.png"
        assert client.images.generate.call_args.kwargs["n"] == 1

    @pytest.mark.asyncio
    async def test_generate_image_without_url(self):
        client = MagicMock()
        client.images.generate = AsyncMock(return_value=SimpleNamespace(data=[]))
        provider = OpenAIProvider(api_key="test-key", client=client)

        with pytest.raises(AIProviderError):
            await provider.generate_image("a lighthouse")

    @pytest.mark.asyncio
    async def test_stream_yields_text_and_completion(self):
        def chunk(content=None, finish_reason=None):
            return SimpleNamespace(choices=[SimpleNamespace(
                delta=SimpleNamespace(content=content),
                finish_reason=finish_reason,
            )])

        async def fake_stream():
            for item in [chunk("# Ti"), chunk("tle"), chunk(finish_reason="stop")]:
                yield item

        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=fake_stream())
        provider = OpenAIProvider(api_key="test-key", client=client)

        events = [event async for event in provider.stream_generate("prompt", system="sys")]
        assert events[:2] == ["# Ti", "tle"]
        assert events[2]["type"] == "complete"
        messages = client.chat.completions.create.call_args.kwargs["messages"]
        assert messages[0] == {"role": "system", "content": "sys"}


class TestAICollaborator:

    @pytest.mark.asyncio
    async def test_falls_back_to_next_provider(self, bullet_issue):
        primary = mock_provider(AIProvider.ANTHROPIC, side_effect=AIProviderError("down", AIProvider.ANTHROPIC))
        fallback = mock_provider(AIProvider.OPENAI, return_value=ai_response("# Fixed", AIProvider.OPENAI))
        collaborator = AICollaborator(providers={AIProvider.ANTHROPIC: primary, AIProvider.OPENAI: fallback})

        assert await collaborator.generate("# Old", "Fix it", [bullet_issue]) == "# Fixed"
        primary.generate.assert_awaited_once()
        fallback.generate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_all_providers_failing(self):
        primary = mock_provider(AIProvider.ANTHROPIC, side_effect=AIProviderError("down"))
        collaborator = AICollaborator(providers={AIProvider.ANTHROPIC: primary})

        with pytest.raises(AIProviderError, match="All AI providers failed"):
            await collaborator.generate("# Old", "Fix it", [])

    @pytest.mark.asyncio
    async def test_no_providers(self):
        with pytest.raises(CollaboratorError):
            await AICollaborator(providers={}).generate_deck("Topic", 5, "en", "professional", False)

    @pytest.mark.asyncio
    async def test_image_requires_capable_provider(self):
        provider = mock_provider(AIProvider.ANTHROPIC)
        provider.supports_capability = MagicMock(return_value=False)
        collaborator = AICollaborator(providers={AIProvider.ANTHROPIC: provider})

        with pytest.raises(CollaboratorError):
            await collaborator.generate_image_reference("a chart")

    @pytest.mark.asyncio
    async def test_streaming_edits(self):
        async def fake_stream(prompt, **kwargs):
            yield "# Str"
            yield "eamed"

        provider = MagicMock()
        provider.provider = AIProvider.ANTHROPIC
        provider.stream_generate = fake_stream
        collaborator = AICollaborator(providers={AIProvider.ANTHROPIC: provider}, stream_edits=True)

        stream = await collaborator.generate("# Old", "Rewrite", [])
        assert [part async for part in stream] == ["# Str", "eamed"]
