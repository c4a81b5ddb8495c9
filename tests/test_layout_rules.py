"""
Tests for the heuristic layout rules engine.
"""
import pytest

from slidewright.domain.schemas.deck import Slide
from slidewright.domain.schemas.layout import (
    IssueSeverity,
    LayoutCheckConfig,
    LayoutIssueType,
)
from slidewright.services.slides.rules import (
    BulletCountRule,
    EmptySlideRule,
    LayoutRuleEngine,
    check_deck_layout,
    check_slide_layout,
    default_rules,
    get_layout_engine,
)
from tests.mocks.collaborators import bullets


def issue_types(issues):
    return [issue.type for issue in issues]


class TestEmptySlideRule:
    """Empty and near-empty slides."""

    @pytest.mark.parametrize("content", ["", "Hi there", "# Ok", "**bold**", "```python\nprint(1)\n```"])
    def test_short_text_is_flagged(self, content):
        issues = check_slide_layout(Slide(content=content), LayoutCheckConfig())
        empty = [issue for issue in issues if issue.type == LayoutIssueType.EMPTY_SLIDE]
        assert len(empty) == 1
        assert empty[0].severity == IssueSeverity.WARNING

    def test_enough_text_is_not_flagged(self):
        issues = check_slide_layout(Slide(content="# Title\n\nA full sentence of content."), LayoutCheckConfig())
        assert LayoutIssueType.EMPTY_SLIDE not in issue_types(issues)

    def test_char_count_meta(self):
        issues = EmptySlideRule().check(Slide(content="Hi there"), LayoutCheckConfig())
        assert issues[0].meta.char_count == 8


class TestMissingTitleRule:

    def test_missing_heading_is_info(self):
        issues = check_slide_layout(Slide(content="Just some body text without a heading."))
        titles = [issue for issue in issues if issue.type == LayoutIssueType.MISSING_TITLE]
        assert len(titles) == 1
        assert titles[0].severity == IssueSeverity.INFO

    @pytest.mark.parametrize("layout", ["cover", "center", "quote", "end"])
    def test_exempt_layouts(self, layout):
        slide = Slide(content="Just some body text without a heading.", layout=layout)
        assert LayoutIssueType.MISSING_TITLE not in issue_types(check_slide_layout(slide))

    def test_level_four_heading_does_not_count(self):
        slide = Slide(content="#### Deep heading\n\nSome text for the slide.")
        assert LayoutIssueType.MISSING_TITLE in issue_types(check_slide_layout(slide))


class TestBulletCountRule:
    """Bullet limits with graded severity."""

    def test_seven_bullets_is_a_warning(self):
        issues = check_slide_layout(Slide(content=bullets(7)), LayoutCheckConfig(max_bullets_per_slide=6))
        assert len(issues) == 1
        assert issues[0].type == LayoutIssueType.TOO_MANY_BULLETS
        assert issues[0].severity == IssueSeverity.WARNING
        assert issues[0].meta.bullet_count == 7

    def test_ten_bullets_is_an_error(self):
        issues = check_slide_layout(Slide(content=bullets(10)), LayoutCheckConfig(max_bullets_per_slide=6))
        assert len(issues) == 1
        assert issues[0].severity == IssueSeverity.ERROR

    def test_at_limit_is_clean(self):
        assert check_slide_layout(Slide(content=bullets(6)), LayoutCheckConfig()) == []

    def test_numbered_items_count(self):
        content = "# Steps\n\n" + "\n".join(f"{i}. Step {i}" for i in range(1, 8))
        issues = BulletCountRule().check(Slide(content=content), LayoutCheckConfig())
        assert issues[0].meta.bullet_count == 7

    def test_code_lines_are_not_bullets(self):
        content = "# Diff\n\n```diff\n" + "\n".join(f"- removed {i}" for i in range(10)) + "\n```"
        assert BulletCountRule().check(Slide(content=content), LayoutCheckConfig()) == []


class TestTextLengthRules:

    def test_long_text_warning_then_error(self):
        config = LayoutCheckConfig(max_chars_per_slide=100)
        warning = check_slide_layout(Slide(content="# T\n\n" + "word " * 25), config)
        error = check_slide_layout(Slide(content="# T\n\n" + "word " * 40), config)

        long_text = [i for i in warning if i.type == LayoutIssueType.TOO_LONG_TEXT and i.meta]
        assert long_text[0].severity == IssueSeverity.WARNING
        long_text = [i for i in error if i.type == LayoutIssueType.TOO_LONG_TEXT and i.meta]
        assert long_text[0].severity == IssueSeverity.ERROR

    def test_long_lines_reported_once(self):
        content = "# Title\n\n" + "\n".join(["x" * 120, "y" * 130])
        issues = check_slide_layout(Slide(content=content))
        line_issues = [i for i in issues if "line(s) exceed" in i.message]
        assert len(line_issues) == 1
        assert line_issues[0].message.startswith("2 line(s)")
        assert line_issues[0].severity == IssueSeverity.INFO

    def test_long_code_block(self):
        code = "\n".join(f"line_{i} = {i}" for i in range(35))
        issues = check_slide_layout(Slide(content=f"# Code\n\n```python\n{code}\n```"))
        code_issues = [i for i in issues if i.message.startswith("Code block")]
        assert code_issues[0].severity == IssueSeverity.ERROR


    @pytest.mark.parametrize("opening, closing", [
        ("```ts {1,3}", "```"),
        ("```c++", "```"),
        ("~~~python", "~~~"),
    ])
    def test_highlighted_and_tilde_fences(self, opening, closing):
        code = "\n".join(f"const v{i} = {i}" for i in range(25))
        issues = check_slide_layout(Slide(content=f"# T\n\n{opening}\n{code}\n{closing}"))
        code_issues = [i for i in issues if i.message.startswith("Code block has 25 lines")]
        assert len(code_issues) == 1
        assert code_issues[0].severity == IssueSeverity.WARNING

    def test_tilde_fence_is_not_counted_as_text(self):
        code = "\n".join(f"- item {i}" for i in range(10))
        slide = Slide(content=f"# Diff\n\n~~~diff\n{code}\n~~~")
        assert LayoutIssueType.TOO_MANY_BULLETS not in issue_types(check_slide_layout(slide))


class TestImageTextCrowding:

    def test_image_tightens_budget(self):
        text = "# Chart\n\n" + "Some descriptive text. " * 20
        slide = Slide(content=text + "\n\n![chart](chart.png)")
        issues = check_slide_layout(slide)
        crowded = [i for i in issues if i.type == LayoutIssueType.IMAGE_TEXT_CROWDED]
        assert len(crowded) == 1
        assert crowded[0].meta.image_count == 1

    def test_mermaid_counts_as_visual(self):
        text = "# Flow\n\n" + "Explaining the flow in detail. " * 14
        slide = Slide(content=text + "\n\n```mermaid\ngraph TD\n  A --> B\n```")
        assert LayoutIssueType.IMAGE_TEXT_CROWDED in issue_types(check_slide_layout(slide))

    def test_small_caption_is_fine(self):
        slide = Slide(content="# Chart\n\nQuarterly revenue.\n\n![chart](chart.png)")
        assert LayoutIssueType.IMAGE_TEXT_CROWDED not in issue_types(check_slide_layout(slide))


class TestLayoutRuleEngine:

    def test_detector_is_deterministic(self):
        slide = Slide(content=bullets(12, title=None))
        assert check_slide_layout(slide) == check_slide_layout(slide)

    def test_issues_carry_slide_index(self):
        slides = [Slide(index=0, content="Hi"), Slide(index=1, content=bullets(8))]
        issues = check_deck_layout(slides)
        assert {issue.slide_index for issue in issues} == {0, 1}
        assert issues[0].slide_index == 0

    def test_never_produces_visual_only_types(self):
        slide = Slide(content=bullets(40) + "\n\n![a](a.png)\n\n" + "text " * 300)
        types = issue_types(check_slide_layout(slide))
        assert LayoutIssueType.OVERFLOW_DETECTED not in types
        assert LayoutIssueType.FONT_TOO_SMALL not in types

    def test_register_duplicate_rule(self):
        engine = LayoutRuleEngine(default_rules())
        with pytest.raises(ValueError):
            engine.register_rule(EmptySlideRule())

    def test_unregister_and_disable(self):
        engine = LayoutRuleEngine(default_rules())
        engine.unregister_rule("layout.empty_slide")
        for rule in engine.rules:
            if rule.rule_id == "layout.missing_title":
                rule.enabled = False
        assert engine.check_slide(Slide(content="Hi")) == []

    def test_singleton_engine_documentation(self):
        docs = get_layout_engine().get_rule_documentation()
        assert docs[0]["rule_id"] == "layout.empty_slide"
        assert get_layout_engine() is get_layout_engine()
