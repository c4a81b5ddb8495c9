"""
Entry points for slide and deck layout checks.
"""
from typing import List, Optional, Sequence

from slidewright.domain.schemas.deck import Slide
from slidewright.domain.schemas.layout import LayoutCheckConfig, LayoutIssue
from slidewright.services.slides.rules.base import LayoutRuleEngine
from slidewright.services.slides.rules.layout_rules import default_rules

# Singleton instance
_layout_engine: Optional[LayoutRuleEngine] = None


def get_layout_engine() -> LayoutRuleEngine:
    """Get the singleton engine loaded with the built-in rules."""
    global _layout_engine
    if _layout_engine is None:
        _layout_engine = LayoutRuleEngine(default_rules())
    return _layout_engine


def check_slide_layout(slide: Slide, config: Optional[LayoutCheckConfig] = None) -> List[LayoutIssue]:
    """
    Check a slide for layout issues.

    Every call returns a fresh list; identical input gives identical output.
    """
    return get_layout_engine().check_slide(slide, config or LayoutCheckConfig.from_settings())


def check_deck_layout(slides: Sequence[Slide], config: Optional[LayoutCheckConfig] = None) -> List[LayoutIssue]:
    """Check every slide and concatenate the issues in slide order."""
    return get_layout_engine().check_slides(list(slides), config or LayoutCheckConfig.from_settings())
