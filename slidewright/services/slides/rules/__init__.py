"""
Slidewright layout rules engine.

Deterministic heuristic checks for slide density and structure:
- Empty slides and missing titles
- Slide and line text length
- Bullet point counts
- Text crowding next to images and diagrams
- Oversized code blocks
"""

from slidewright.services.slides.rules.base import (
    LayoutRule,
    LayoutRuleEngine,
    strip_code_and_images,
)

from slidewright.services.slides.rules.layout_rules import (
    BulletCountRule,
    CodeBlockLengthRule,
    EmptySlideRule,
    ImageTextCrowdingRule,
    LineLengthRule,
    MissingTitleRule,
    TextLengthRule,
    TITLE_EXEMPT_LAYOUTS,
    default_rules,
)

from slidewright.services.slides.rules.checker import (
    check_deck_layout,
    check_slide_layout,
    get_layout_engine,
)

__all__ = [
    "LayoutRule",
    "LayoutRuleEngine",
    "strip_code_and_images",
    "BulletCountRule",
    "CodeBlockLengthRule",
    "EmptySlideRule",
    "ImageTextCrowdingRule",
    "LineLengthRule",
    "MissingTitleRule",
    "TextLengthRule",
    "TITLE_EXEMPT_LAYOUTS",
    "default_rules",
    "check_deck_layout",
    "check_slide_layout",
    "get_layout_engine",
]
