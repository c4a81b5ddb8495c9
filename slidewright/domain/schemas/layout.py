"""
Schemas for layout issues, check configuration and score weights.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from slidewright.core.config import get_settings


class LayoutIssueType(str, Enum):
    """Kinds of layout problem a slide can have."""
    TOO_LONG_TEXT = "too-long-text"
    TOO_MANY_BULLETS = "too-many-bullets"
    IMAGE_TEXT_CROWDED = "image-text-crowded"
    OVERFLOW_DETECTED = "overflow-detected"
    FONT_TOO_SMALL = "font-too-small"
    EMPTY_SLIDE = "empty-slide"
    MISSING_TITLE = "missing-title"


class IssueSeverity(str, Enum):
    """Severity levels for layout issues."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueMeta(BaseModel):
    """Counts attached to an issue."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    char_count: Optional[int] = Field(None, alias="charCount")
    bullet_count: Optional[int] = Field(None, alias="bulletCount")
    image_count: Optional[int] = Field(None, alias="imageCount")
    overflow_pixels: Optional[int] = Field(None, alias="overflowPixels")


class LayoutIssue(BaseModel):
    """A detected layout issue."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: LayoutIssueType
    message: str
    severity: IssueSeverity
    slide_index: int = Field(..., alias="slideIndex")
    suggestion: Optional[str] = None
    meta: Optional[IssueMeta] = None


class LayoutCheckConfig(BaseModel):
    """Thresholds for the heuristic layout checks."""
    max_chars_per_slide: int = Field(default=600, gt=0, alias="maxCharsPerSlide")
    max_bullets_per_slide: int = Field(default=6, gt=0, alias="maxBulletsPerSlide")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_settings(cls) -> "LayoutCheckConfig":
        current = get_settings()
        return cls(
            max_chars_per_slide=current.LAYOUT_MAX_CHARS_PER_SLIDE,
            max_bullets_per_slide=current.LAYOUT_MAX_BULLETS_PER_SLIDE,
        )


class ScoreWeights(BaseModel):
    """Points deducted per issue of each severity."""
    model_config = ConfigDict(frozen=True)

    error: int = Field(default=25, ge=0)
    warning: int = Field(default=10, ge=0)
    info: int = Field(default=3, ge=0)

    @classmethod
    def from_settings(cls) -> "ScoreWeights":
        current = get_settings()
        return cls(
            error=current.SCORE_WEIGHT_ERROR,
            warning=current.SCORE_WEIGHT_WARNING,
            info=current.SCORE_WEIGHT_INFO,
        )

    def for_severity(self, severity: IssueSeverity) -> int:
        return {
            IssueSeverity.ERROR: self.error,
            IssueSeverity.WARNING: self.warning,
            IssueSeverity.INFO: self.info,
        }[severity]
