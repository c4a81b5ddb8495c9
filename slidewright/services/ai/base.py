"""
Collaborator capability interface and AI provider base classes.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Union

import structlog
from pydantic import BaseModel, Field

from slidewright.core.exceptions import CollaboratorError
from slidewright.domain.schemas.layout import LayoutIssue

logger = structlog.get_logger(__name__)

# A collaborator may answer with the full text or with a stream of text deltas.
CollaboratorResponse = Union[str, AsyncIterator[Any]]

LAYOUT_FIX_INSTRUCTION = "Fix the listed layout issues while keeping the slide's message."


class AIProvider(str, Enum):
    """Available AI providers."""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"


class ModelCapability(str, Enum):
    """Model capabilities."""
    TEXT_GENERATION = "text_generation"
    IMAGE_GENERATION = "image_generation"
    STREAMING = "streaming"


class ContentType(str, Enum):
    """Kinds of generation request."""
    DECK_GENERATION = "deck_generation"
    SLIDE_EDIT = "slide_edit"
    LAYOUT_FIX = "layout_fix"
    SLIDE_SPLIT = "slide_split"
    DIAGRAM = "diagram"
    IMAGE = "image"


@dataclass
class TokenUsage:
    """Token usage tracking."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    estimated_cost: float


@dataclass
class AIResponse:
    """Standard AI response format."""
    content: str
    provider: AIProvider
    model: str
    usage: TokenUsage
    latency_ms: int
    metadata: Optional[Dict[str, Any]] = None


class PromptTemplate(BaseModel):
    """Prompt template structure."""
    id: str
    name: str
    content_type: ContentType
    template: str
    variables: List[str]
    version: int = 1
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def format(self, **kwargs) -> str:
        """Format template with provided variables."""
        missing = [name for name in self.variables if name not in kwargs]
        if missing:
            raise KeyError(f"Missing prompt variables for {self.id}: {', '.join(missing)}")
        return self.template.format(**kwargs)


class SlideCollaborator(ABC):
    """
    External generation capability the edit orchestrator delegates to.

    Implementations return raw text (or a stream of text deltas); the
    orchestrator drains streams and applies output cleanup itself. Failures
    should be raised as ``CollaboratorError``; anything else raised is
    treated the same way by the orchestrator.
    """

    @abstractmethod
    async def generate(
        self,
        content: str,
        instruction: str,
        issues: Sequence[LayoutIssue],
    ) -> CollaboratorResponse:
        """Regenerate one slide's content, fixing ``issues`` when given."""

    @abstractmethod
    async def generate_deck(
        self,
        topic: str,
        slide_count: int,
        language: str,
        style: str,
        include_notes: bool,
    ) -> CollaboratorResponse:
        """Generate a complete deck as markdown."""

    @abstractmethod
    async def generate_diagram(self, description: str, diagram_type: str) -> CollaboratorResponse:
        """Generate Mermaid source for a diagram."""

    @abstractmethod
    async def generate_image_reference(self, prompt: str) -> CollaboratorResponse:
        """Produce a reference (URL or path) to an image for ``prompt``."""

    async def fix_layout(self, content: str, issues: Sequence[LayoutIssue]) -> CollaboratorResponse:
        """Single-shot repair of ``issues``; defaults to an issue-aware edit."""
        return await self.generate(content, LAYOUT_FIX_INSTRUCTION, issues)

    async def split(self, content: str, issues: Sequence[LayoutIssue]) -> CollaboratorResponse:
        """Rewrite an overcrowded slide as several separator-delimited slides."""
        raise CollaboratorError("Slide splitting is not supported by this collaborator")


class AIProviderBase(ABC):
    """Base class for AI providers."""

    def __init__(self, api_key: Optional[str], **kwargs):
        self.api_key = api_key
        self.provider = AIProvider.ANTHROPIC  # Override in subclasses
        self.capabilities: List[ModelCapability] = []
        self.default_model: str = ""
        self.pricing: Dict[str, Dict[str, float]] = {}  # model -> {input/output -> price}

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: float = 0.7,
        system: Optional[str] = None,
        **kwargs
    ) -> AIResponse:
        """Generate text completion."""

    @abstractmethod
    def stream_generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        **kwargs
    ) -> AsyncIterator[Any]:
        """Stream text deltas; non-text events (usage) may be interleaved."""

    async def generate_image(self, prompt: str, **kwargs) -> str:
        """Generate an image and return its URL."""
        raise ModelNotAvailableError(f"{self.provider.value} does not support image generation")

    def estimate_cost(
        self,
        prompt_tokens: int,
        completion_tokens: int,
        model: Optional[str] = None
    ) -> float:
        """Estimate cost for token usage (prices per 1M tokens)."""
        model = model or self.default_model
        if model not in self.pricing:
            return 0.0

        input_price = self.pricing[model].get("input", 0)
        output_price = self.pricing[model].get("output", 0)

        input_cost = (prompt_tokens / 1_000_000) * input_price
        output_cost = (completion_tokens / 1_000_000) * output_price

        return round(input_cost + output_cost, 6)

    def supports_capability(self, capability: ModelCapability) -> bool:
        """Check if provider supports capability."""
        return capability in self.capabilities


class AIProviderError(CollaboratorError):
    """Base exception for AI provider errors."""

    def __init__(self, message: str, provider: Optional[AIProvider] = None):
        super().__init__(message, service=provider.value if provider else None)
        self.provider = provider


class RateLimitError(AIProviderError):
    """Raised when rate limit is hit."""


class ModelNotAvailableError(AIProviderError):
    """Raised when requested model or capability is not available."""
