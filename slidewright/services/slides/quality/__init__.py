"""
Layout quality scoring for Slidewright decks.
"""

from .scoring import (
    DeckScore,
    calculate_deck_score,
    calculate_layout_score,
    count_by_severity,
    format_issues_for_display,
    get_fix_priority,
    should_split_slide,
)

__all__ = [
    "DeckScore",
    "calculate_deck_score",
    "calculate_layout_score",
    "count_by_severity",
    "format_issues_for_display",
    "get_fix_priority",
    "should_split_slide",
]
