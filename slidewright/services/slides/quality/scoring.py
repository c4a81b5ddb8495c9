"""
Layout score calculation and issue triage helpers.
"""
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from slidewright.domain.schemas.deck import SlideDeck
from slidewright.domain.schemas.layout import (
    IssueSeverity,
    LayoutCheckConfig,
    LayoutIssue,
    LayoutIssueType,
    ScoreWeights,
)
from slidewright.services.slides.rules.checker import check_slide_layout

MAX_SCORE = 100

SEVERITY_ORDER = {
    IssueSeverity.ERROR: 0,
    IssueSeverity.WARNING: 1,
    IssueSeverity.INFO: 2,
}

SEVERITY_ICONS = {
    IssueSeverity.ERROR: "[error]",
    IssueSeverity.WARNING: "[warn]",
    IssueSeverity.INFO: "[info]",
}

SPLIT_TRIGGER_TYPES = frozenset({LayoutIssueType.TOO_LONG_TEXT, LayoutIssueType.TOO_MANY_BULLETS})


class DeckScore(BaseModel):
    """Per-slide and overall layout scores for a deck."""
    overall_score: float = Field(..., ge=0, le=MAX_SCORE)
    slide_scores: Dict[int, int] = Field(default_factory=dict)
    issue_count: int = 0
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0


def calculate_layout_score(issues: Iterable[LayoutIssue], weights: Optional[ScoreWeights] = None) -> int:
    """
    Reduce an issue set to a score in [0, 100].

    Each issue deducts its severity's weight from 100; the result is clamped
    at 0. Adding an issue never raises the score.
    """
    weights = weights or ScoreWeights()
    score = MAX_SCORE
    for issue in issues:
        score -= weights.for_severity(issue.severity)
    return max(0, score)


def calculate_deck_score(
    deck: SlideDeck,
    config: Optional[LayoutCheckConfig] = None,
    weights: Optional[ScoreWeights] = None,
) -> DeckScore:
    """Score every slide and average the results; an empty deck scores 100."""
    slide_scores: Dict[int, int] = {}
    all_issues: List[LayoutIssue] = []

    for slide in deck.slides:
        issues = check_slide_layout(slide, config)
        slide_scores[slide.index] = calculate_layout_score(issues, weights)
        all_issues.extend(issues)

    overall = sum(slide_scores.values()) / len(slide_scores) if slide_scores else float(MAX_SCORE)
    counts = count_by_severity(all_issues)

    return DeckScore(
        overall_score=round(overall, 2),
        slide_scores=slide_scores,
        issue_count=len(all_issues),
        error_count=counts[IssueSeverity.ERROR],
        warning_count=counts[IssueSeverity.WARNING],
        info_count=counts[IssueSeverity.INFO],
    )


def count_by_severity(issues: Iterable[LayoutIssue]) -> Dict[IssueSeverity, int]:
    counts = {severity: 0 for severity in IssueSeverity}
    for issue in issues:
        counts[issue.severity] += 1
    return counts


def should_split_slide(issues: Iterable[LayoutIssue]) -> bool:
    """True when text or bullet overload is severe enough to need a split."""
    return any(
        issue.severity == IssueSeverity.ERROR and issue.type in SPLIT_TRIGGER_TYPES
        for issue in issues
    )


def get_fix_priority(issues: Iterable[LayoutIssue]) -> List[LayoutIssue]:
    """Issues ordered errors first, then warnings, then info (stable)."""
    return sorted(issues, key=lambda issue: SEVERITY_ORDER[issue.severity])


def format_issues_for_display(issues: List[LayoutIssue]) -> str:
    """Render issues grouped by slide for terminal output."""
    if not issues:
        return "No layout issues detected"

    grouped: "OrderedDict[int, List[LayoutIssue]]" = OrderedDict()
    for issue in issues:
        grouped.setdefault(issue.slide_index, []).append(issue)

    lines: List[str] = []
    for slide_index, slide_issues in grouped.items():
        lines.append(f"Slide {slide_index + 1}:")
        for issue in slide_issues:
            lines.append(f"  {SEVERITY_ICONS[issue.severity]} {issue.message}")
            if issue.suggestion:
                lines.append(f"      suggestion: {issue.suggestion}")

    return "\n".join(lines)
