"""
Application configuration management using Pydantic Settings.
"""
from functools import lru_cache
from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Slidewright"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")

    # AI Services
    ANTHROPIC_API_KEY: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: Optional[str] = None
    AI_MODEL_PRIMARY: str = "claude-3-5-sonnet-20241022"
    AI_MODEL_FALLBACK: str = "gpt-4o-mini"
    AI_IMAGE_MODEL: str = "dall-e-3"
    AI_TEMPERATURE: float = Field(default=0.7, ge=0.0, le=2.0)
    AI_MAX_TOKENS: int = Field(default=4096, gt=0)
    AI_SLIDE_MAX_TOKENS: int = Field(default=2048, gt=0)
    AI_TIMEOUT_SECONDS: float = Field(default=120.0, gt=0)

    # Layout heuristics
    LAYOUT_MAX_CHARS_PER_SLIDE: int = Field(default=600, gt=0)
    LAYOUT_MAX_BULLETS_PER_SLIDE: int = Field(default=6, gt=0)

    # Auto-fix loop
    AUTOFIX_MAX_ITERATIONS: int = Field(default=3, ge=1)
    AUTOFIX_ACCEPTANCE_SCORE: int = Field(default=80, ge=0, le=100)

    # Score weights (points deducted per issue)
    SCORE_WEIGHT_ERROR: int = Field(default=25, ge=0)
    SCORE_WEIGHT_WARNING: int = Field(default=10, ge=0)
    SCORE_WEIGHT_INFO: int = Field(default=3, ge=0)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT == "development"

    def get_ai_config(self) -> Dict[str, Any]:
        """Get AI service configuration."""
        return {
            "primary_model": self.AI_MODEL_PRIMARY,
            "fallback_model": self.AI_MODEL_FALLBACK,
            "image_model": self.AI_IMAGE_MODEL,
            "temperature": self.AI_TEMPERATURE,
            "max_tokens": self.AI_MAX_TOKENS,
            "timeout": self.AI_TIMEOUT_SECONDS,
            "has_anthropic": bool(self.ANTHROPIC_API_KEY),
            "has_openai": bool(self.OPENAI_API_KEY),
        }

    def get_layout_config(self) -> Dict[str, Any]:
        """Get layout heuristic and auto-fix configuration."""
        return {
            "max_chars_per_slide": self.LAYOUT_MAX_CHARS_PER_SLIDE,
            "max_bullets_per_slide": self.LAYOUT_MAX_BULLETS_PER_SLIDE,
            "max_iterations": self.AUTOFIX_MAX_ITERATIONS,
            "acceptance_score": self.AUTOFIX_ACCEPTANCE_SCORE,
        }


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()


# Create a settings instance for easy import
settings = get_settings()
