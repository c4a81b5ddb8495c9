"""
Base rule class and engine for heuristic layout checks.
"""
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from slidewright.domain.schemas.deck import Slide
from slidewright.domain.schemas.layout import (
    IssueMeta,
    IssueSeverity,
    LayoutCheckConfig,
    LayoutIssue,
    LayoutIssueType,
)

CODE_FENCE_PATTERN = re.compile(r"(`{3,}|~{3,})[\s\S]*?\1")
IMAGE_PATTERN = re.compile(r"!\[[^\]]*\]\([^)]+\)")
LEADING_FRONTMATTER_PATTERN = re.compile(r"\A---\n[\s\S]*?\n---\n?")


def strip_code_and_images(content: str) -> str:
    """Text of a slide without fenced code, images or a leading frontmatter block."""
    text = CODE_FENCE_PATTERN.sub("", content)
    text = IMAGE_PATTERN.sub("", text)
    text = LEADING_FRONTMATTER_PATTERN.sub("", text)
    return text.strip()


class LayoutRule(ABC):
    """Base class for all layout rules."""

    def __init__(
        self,
        rule_id: str,
        name: str,
        description: str,
        issue_type: LayoutIssueType,
        severity: IssueSeverity = IssueSeverity.WARNING,
        enabled: bool = True,
    ):
        self.rule_id = rule_id
        self.name = name
        self.description = description
        self.issue_type = issue_type
        self.severity = severity
        self.enabled = enabled

    @abstractmethod
    def check(self, slide: Slide, config: LayoutCheckConfig) -> List[LayoutIssue]:
        """
        Check a slide against this rule.

        Args:
            slide: The slide to check
            config: Thresholds for the check

        Returns:
            Issues found (empty if the slide passes)
        """

    def is_applicable(self, slide: Slide) -> bool:
        """
        Check if this rule applies to the given slide.
        Override to add custom applicability logic.
        """
        return self.enabled

    def create_issue(
        self,
        slide: Slide,
        message: str,
        suggestion: Optional[str] = None,
        severity: Optional[IssueSeverity] = None,
        **meta: int,
    ) -> LayoutIssue:
        """Helper to create an issue with this rule's defaults."""
        return LayoutIssue(
            type=self.issue_type,
            message=message,
            severity=severity or self.severity,
            slide_index=slide.index,
            suggestion=suggestion,
            meta=IssueMeta(**meta) if meta else None,
        )

    @staticmethod
    def graded_severity(count: int, threshold: int) -> IssueSeverity:
        """Warning above the threshold, error above 1.5x the threshold."""
        return IssueSeverity.ERROR if count > threshold * 1.5 else IssueSeverity.WARNING


class LayoutRuleEngine:
    """Runs an ordered list of layout rules over slides."""

    def __init__(self, rules: Optional[List[LayoutRule]] = None):
        self.rules: List[LayoutRule] = list(rules or [])

    def register_rule(self, rule: LayoutRule) -> None:
        """Append a rule; rules run in registration order."""
        if any(existing.rule_id == rule.rule_id for existing in self.rules):
            raise ValueError(f"Rule {rule.rule_id} is already registered")
        self.rules.append(rule)

    def unregister_rule(self, rule_id: str) -> None:
        self.rules = [rule for rule in self.rules if rule.rule_id != rule_id]

    def check_slide(self, slide: Slide, config: Optional[LayoutCheckConfig] = None) -> List[LayoutIssue]:
        """Run every applicable rule and concatenate the results in rule order."""
        config = config or LayoutCheckConfig()
        issues: List[LayoutIssue] = []
        for rule in self.rules:
            if rule.is_applicable(slide):
                issues.extend(rule.check(slide, config))
        return issues

    def check_slides(self, slides: List[Slide], config: Optional[LayoutCheckConfig] = None) -> List[LayoutIssue]:
        issues: List[LayoutIssue] = []
        for slide in slides:
            issues.extend(self.check_slide(slide, config))
        return issues

    def get_rule_documentation(self) -> List[Dict[str, Any]]:
        """Get documentation for all registered rules, in run order."""
        return [
            {
                "rule_id": rule.rule_id,
                "name": rule.name,
                "description": rule.description,
                "issue_type": rule.issue_type.value,
                "severity": rule.severity.value,
                "enabled": rule.enabled,
            }
            for rule in self.rules
        ]
