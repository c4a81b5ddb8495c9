"""
AI collaborator module for Slidewright slide generation and repair.
"""
from .base import (
    AIProvider,
    AIProviderBase,
    AIProviderError,
    AIResponse,
    CollaboratorResponse,
    ContentType,
    LAYOUT_FIX_INSTRUCTION,
    ModelCapability,
    ModelNotAvailableError,
    PromptTemplate,
    RateLimitError,
    SlideCollaborator,
    TokenUsage,
)
from .anthropic_provider import AnthropicProvider
from .collaborator import AICollaborator
from .content_processor import ContentProcessor
from .openai_provider import OpenAIProvider
from .prompt_manager import PromptManager

__all__ = [
    # Base classes
    "AIProvider",
    "AIProviderBase",
    "AIProviderError",
    "AIResponse",
    "CollaboratorResponse",
    "ContentType",
    "LAYOUT_FIX_INSTRUCTION",
    "ModelCapability",
    "ModelNotAvailableError",
    "PromptTemplate",
    "RateLimitError",
    "SlideCollaborator",
    "TokenUsage",
    # Providers
    "AnthropicProvider",
    "OpenAIProvider",
    # Core services
    "AICollaborator",
    "ContentProcessor",
    "PromptManager",
]
