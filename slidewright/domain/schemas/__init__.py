"""Pydantic schemas for decks and layout issues."""

from .deck import Slide, SlideDeck, SlideInput
from .layout import (
    IssueMeta,
    IssueSeverity,
    LayoutCheckConfig,
    LayoutIssue,
    LayoutIssueType,
    ScoreWeights,
)

__all__ = [
    "IssueMeta",
    "IssueSeverity",
    "LayoutCheckConfig",
    "LayoutIssue",
    "LayoutIssueType",
    "ScoreWeights",
    "Slide",
    "SlideDeck",
    "SlideInput",
]
