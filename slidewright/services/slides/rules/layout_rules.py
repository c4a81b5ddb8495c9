"""
Heuristic layout rules for slide content.
"""
import math
import re
from typing import List

from slidewright.domain.schemas.deck import Slide
from slidewright.domain.schemas.layout import (
    IssueSeverity,
    LayoutCheckConfig,
    LayoutIssue,
    LayoutIssueType,
)
from slidewright.services.slides.deck.parser import (
    extract_code_blocks,
    extract_images,
    has_mermaid_diagram,
)
from slidewright.services.slides.rules.base import (
    CODE_FENCE_PATTERN,
    IMAGE_PATTERN,
    LEADING_FRONTMATTER_PATTERN,
    LayoutRule,
    strip_code_and_images,
)

TITLE_EXEMPT_LAYOUTS = frozenset({"cover", "intro", "center", "quote", "image", "end"})

MIN_CONTENT_CHARS = 10
MAX_LINE_LENGTH = 100
MAX_CODE_LINES = 20
MAX_CODE_LINES_ERROR = 30
IMAGE_TEXT_RATIO = 0.6

HEADING_MARKER_PATTERN = re.compile(r"^#+\s*", re.MULTILINE)
INLINE_MARKUP_PATTERN = re.compile(r"[*_`~]")
TITLE_PATTERN = re.compile(r"^#{1,3}\s+\S", re.MULTILINE)
BULLET_PREFIX_PATTERN = re.compile(r"^[-*+]\s*")
BULLET_LINE_PATTERN = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+\S")
MERMAID_FENCE_PATTERN = re.compile(r"```mermaid[\s\S]*?```", re.IGNORECASE)


class EmptySlideRule(LayoutRule):
    """Flags slides with little or no visible text."""

    def __init__(self, min_chars: int = MIN_CONTENT_CHARS):
        super().__init__(
            rule_id="layout.empty_slide",
            name="Empty Slide",
            description=f"Slides should carry at least {min_chars} characters of text",
            issue_type=LayoutIssueType.EMPTY_SLIDE,
            severity=IssueSeverity.WARNING,
        )
        self.min_chars = min_chars

    def check(self, slide: Slide, config: LayoutCheckConfig) -> List[LayoutIssue]:
        text = LEADING_FRONTMATTER_PATTERN.sub("", slide.content.strip())
        text = CODE_FENCE_PATTERN.sub("", text)
        text = IMAGE_PATTERN.sub("", text)
        text = HEADING_MARKER_PATTERN.sub("", text)
        text = INLINE_MARKUP_PATTERN.sub("", text).strip()

        if len(text) >= self.min_chars:
            return []

        return [self.create_issue(
            slide,
            message="Slide appears to be empty or has minimal content",
            suggestion="Add meaningful content or consider removing this slide",
            char_count=len(text),
        )]


class MissingTitleRule(LayoutRule):
    """Flags content slides without a level 1-3 heading."""

    def __init__(self):
        super().__init__(
            rule_id="layout.missing_title",
            name="Missing Title",
            description="Content slides should start from a heading",
            issue_type=LayoutIssueType.MISSING_TITLE,
            severity=IssueSeverity.INFO,
        )

    def is_applicable(self, slide: Slide) -> bool:
        return self.enabled and slide.layout not in TITLE_EXEMPT_LAYOUTS

    def check(self, slide: Slide, config: LayoutCheckConfig) -> List[LayoutIssue]:
        if TITLE_PATTERN.search(slide.content):
            return []

        return [self.create_issue(
            slide,
            message="Slide is missing a title or heading",
            suggestion="Add a heading to improve slide structure",
        )]


class TextLengthRule(LayoutRule):
    """Flags slides whose text exceeds the character budget."""

    def __init__(self):
        super().__init__(
            rule_id="layout.text_length",
            name="Slide Text Length",
            description="Slide text should stay within the character budget",
            issue_type=LayoutIssueType.TOO_LONG_TEXT,
        )

    def check(self, slide: Slide, config: LayoutCheckConfig) -> List[LayoutIssue]:
        char_count = len(strip_code_and_images(slide.content))
        limit = config.max_chars_per_slide

        if char_count <= limit:
            return []

        return [self.create_issue(
            slide,
            message=f"Slide has {char_count} characters (max recommended: {limit})",
            suggestion="Shorten text, use bullet points, or split into multiple slides",
            severity=self.graded_severity(char_count, limit),
            char_count=char_count,
        )]


class LineLengthRule(LayoutRule):
    """Reports, in a single issue, how many lines are too long."""

    def __init__(self, max_line_length: int = MAX_LINE_LENGTH):
        super().__init__(
            rule_id="layout.line_length",
            name="Line Length",
            description=f"Lines should be no longer than {max_line_length} characters",
            issue_type=LayoutIssueType.TOO_LONG_TEXT,
            severity=IssueSeverity.INFO,
        )
        self.max_line_length = max_line_length

    def check(self, slide: Slide, config: LayoutCheckConfig) -> List[LayoutIssue]:
        lines = strip_code_and_images(slide.content).split("\n")
        long_lines = [
            line for line in lines
            if len(BULLET_PREFIX_PATTERN.sub("", line).strip()) > self.max_line_length
        ]

        if not long_lines:
            return []

        return [self.create_issue(
            slide,
            message=f"{len(long_lines)} line(s) exceed recommended length ({self.max_line_length} chars)",
            suggestion="Break long lines into shorter phrases or bullet points",
        )]


class BulletCountRule(LayoutRule):
    """Flags slides with too many bullet or numbered list items."""

    def __init__(self):
        super().__init__(
            rule_id="layout.bullet_count",
            name="Bullet Point Count Limit",
            description="Slides should not exceed the bullet point budget",
            issue_type=LayoutIssueType.TOO_MANY_BULLETS,
        )

    def check(self, slide: Slide, config: LayoutCheckConfig) -> List[LayoutIssue]:
        text = CODE_FENCE_PATTERN.sub("", slide.content)
        bullet_count = sum(1 for line in text.split("\n") if BULLET_LINE_PATTERN.match(line))
        limit = config.max_bullets_per_slide

        if bullet_count <= limit:
            return []

        return [self.create_issue(
            slide,
            message=f"Slide has {bullet_count} bullet points (max recommended: {limit})",
            suggestion="Consolidate bullet points or split into multiple slides",
            severity=self.graded_severity(bullet_count, limit),
            bullet_count=bullet_count,
        )]


class ImageTextCrowdingRule(LayoutRule):
    """Tightens the text budget on slides that carry images or diagrams."""

    def __init__(self, ratio: float = IMAGE_TEXT_RATIO):
        super().__init__(
            rule_id="layout.image_text_crowding",
            name="Image Text Crowding",
            description="Slides with visuals should carry less text",
            issue_type=LayoutIssueType.IMAGE_TEXT_CROWDED,
        )
        self.ratio = ratio

    def check(self, slide: Slide, config: LayoutCheckConfig) -> List[LayoutIssue]:
        image_count = len(extract_images(slide)) + (1 if has_mermaid_diagram(slide) else 0)
        if image_count == 0:
            return []

        text = IMAGE_PATTERN.sub("", slide.content)
        text = MERMAID_FENCE_PATTERN.sub("", text)
        text = LEADING_FRONTMATTER_PATTERN.sub("", text).strip()
        char_count = len(text)
        limit = math.floor(config.max_chars_per_slide * (self.ratio / image_count))

        if char_count <= limit:
            return []

        return [self.create_issue(
            slide,
            message=(
                f"Slide with {image_count} image(s)/diagram(s) has {char_count} chars "
                f"(recommended: {limit})"
            ),
            suggestion="Reduce text content when including images or diagrams",
            char_count=char_count,
            image_count=image_count,
        )]


class CodeBlockLengthRule(LayoutRule):
    """Flags fenced code blocks that will not fit on a slide."""

    def __init__(self, max_lines: int = MAX_CODE_LINES, error_lines: int = MAX_CODE_LINES_ERROR):
        super().__init__(
            rule_id="layout.code_block_length",
            name="Code Block Length",
            description=f"Code blocks should be no longer than {max_lines} lines",
            issue_type=LayoutIssueType.TOO_LONG_TEXT,
        )
        self.max_lines = max_lines
        self.error_lines = error_lines

    def check(self, slide: Slide, config: LayoutCheckConfig) -> List[LayoutIssue]:
        issues = []
        for block in extract_code_blocks(slide):
            line_count = len(block["code"].split("\n"))
            if line_count <= self.max_lines:
                continue
            issues.append(self.create_issue(
                slide,
                message=f"Code block has {line_count} lines (max recommended: {self.max_lines})",
                suggestion="Shorten code block, highlight key parts, or split across slides",
                severity=IssueSeverity.ERROR if line_count > self.error_lines else IssueSeverity.WARNING,
            ))
        return issues


def default_rules() -> List[LayoutRule]:
    """The built-in rules, in the order they run."""
    return [
        EmptySlideRule(),
        MissingTitleRule(),
        TextLengthRule(),
        LineLengthRule(),
        BulletCountRule(),
        ImageTextCrowdingRule(),
        CodeBlockLengthRule(),
    ]
