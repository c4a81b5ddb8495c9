"""
Tests for the Slidev deck parser and serializer.
"""
import pytest

from slidewright.core.exceptions import IndexOutOfRangeError, ValidationError
from slidewright.domain.schemas.deck import Slide, SlideInput
from slidewright.services.slides.deck import parser


class TestParse:
    """Parsing Slidev markdown into a deck."""

    def test_global_frontmatter(self, sample_deck):
        assert sample_deck.frontmatter == {"title": "Quarterly Review", "theme": "seriph"}

    def test_slides_are_split_and_indexed(self, sample_deck):
        assert sample_deck.slide_count == 3
        assert [slide.index for slide in sample_deck.slides] == [0, 1, 2]
        assert sample_deck.slides[0].content.startswith("# Quarterly Review")

    def test_notes_are_separated_from_content(self, sample_deck):
        highlights = sample_deck.slides[1]
        assert highlights.notes == "Mention the partner launch."
        assert "partner" not in highlights.content
        assert highlights.content.endswith("- Two new markets opened")

    def test_slide_frontmatter_and_layout(self, sample_deck):
        closing = sample_deck.slides[2]
        assert closing.frontmatter == {"layout": "center", "class": "text-center"}
        assert closing.layout == "center"
        assert closing.content.startswith("# Thank You")

    def test_empty_body_yields_zero_slides(self):
        assert parser.parse("").slides == []
        assert parser.parse("   \n\n").slides == []
        assert parser.parse("---\ntitle: Only metadata\n---\n").slides == []

    def test_deck_without_frontmatter(self):
        deck = parser.parse("# One\n\nFirst\n\n---\n\n# Two\n\nSecond")
        assert deck.frontmatter == {}
        assert [slide.content for slide in deck.slides] == ["# One\n\nFirst", "# Two\n\nSecond"]

    def test_separator_inside_code_fence_is_not_a_split(self):
        text = "# Config\n\n```yaml\nkey: value\n---\nother: value\n```\n\n---\n\n# Next\n\nMore"
        deck = parser.parse(text)
        assert deck.slide_count == 2
        assert "other: value" in deck.slides[0].content

    def test_malformed_frontmatter_falls_back_to_content(self):
        deck = parser.parse("---\ntitle: [unclosed\n---\n\n# Slide\n\nBody text here")
        assert deck.frontmatter == {}
        assert any("title: [unclosed" in slide.content for slide in deck.slides)

    def test_windows_line_endings(self):
        deck = parser.parse("# One\r\n\r\nText\r\n---\r\n# Two\r\n")
        assert deck.slide_count == 2
        assert deck.slides[1].content == "# Two"

    def test_notes_marker_is_case_insensitive(self):
        deck = parser.parse("# Slide\n\nBody\n\n<!-- NOTES -->\nSay hello")
        assert deck.slides[0].notes == "Say hello"


class TestSerialize:
    """Serializing decks back to markdown."""

    def test_round_trip_preserves_deck(self, sample_deck):
        reparsed = parser.parse(parser.serialize(sample_deck))
        assert reparsed.content_equals(sample_deck)

    def test_round_trip_first_slide_frontmatter_without_deck_frontmatter(self):
        deck = parser.parse("---\n---\n\n---\nlayout: cover\n---\n\n# Cover\n\n---\n\n# Body\n\nText")
        assert deck.frontmatter == {}
        assert deck.slides[0].layout == "cover"

        reparsed = parser.parse(parser.serialize(deck))
        assert reparsed.content_equals(deck)

    def test_serialize_emits_notes_marker(self, sample_deck):
        text = parser.serialize(sample_deck)
        assert parser.NOTES_MARKER in text
        assert text.startswith("---\ntitle: Quarterly Review")
        assert text.endswith("\n")

    def test_round_trip_after_mutations(self, sample_deck):
        deck = parser.insert_slide(sample_deck, 1, "# Inserted\n\nFresh content")
        deck = parser.update_slide(deck, 0, "# Renamed\n\nNew opening")
        assert parser.parse(parser.serialize(deck)).content_equals(deck)


class TestMutations:
    """Pure deck mutations."""

    def test_get_slide_out_of_range(self, sample_deck):
        with pytest.raises(IndexOutOfRangeError):
            parser.get_slide(sample_deck, 3)
        with pytest.raises(ValidationError):
            parser.get_slide(sample_deck, -1)

    def test_update_slide_keeps_frontmatter_and_notes(self, sample_deck):
        updated = parser.update_slide(sample_deck, 2, "# Goodbye\n\nSee you soon.")
        slide = updated.slides[2]
        assert slide.content == "# Goodbye\n\nSee you soon."
        assert slide.layout == "center"
        assert sample_deck.slides[2].content.startswith("# Thank You")

    def test_update_slide_with_embedded_notes(self, sample_deck):
        updated = parser.update_slide(sample_deck, 0, "# Intro\n\nBody text\n\n<!-- notes -->\nNew notes")
        assert updated.slides[0].notes == "New notes"
        assert updated.slides[0].content == "# Intro\n\nBody text"

    def test_insert_reindexes(self, sample_deck):
        deck = parser.insert_slide(sample_deck, 1, SlideInput(content="# New", layout="two-cols"))
        assert deck.slide_count == 4
        assert [slide.index for slide in deck.slides] == [0, 1, 2, 3]
        assert deck.slides[1].layout == "two-cols"
        assert deck.slides[1].frontmatter == {"layout": "two-cols"}

    def test_insert_at_end(self, sample_deck):
        deck = parser.insert_slide(sample_deck, 3, {"content": "# Appendix"})
        assert deck.slides[-1].content == "# Appendix"

    def test_insert_past_end_rejected(self, sample_deck):
        with pytest.raises(IndexOutOfRangeError):
            parser.insert_slide(sample_deck, 5, "# Too far")

    def test_insert_then_remove_is_identity(self, sample_deck):
        for index in range(sample_deck.slide_count + 1):
            deck = parser.insert_slide(sample_deck, index, "# Temporary\n\nTransient slide")
            assert parser.remove_slide(deck, index).content_equals(sample_deck)

    def test_remove_reindexes(self, sample_deck):
        deck = parser.remove_slide(sample_deck, 0)
        assert deck.slide_count == 2
        assert deck.slides[0].index == 0
        assert deck.slides[0].content.startswith("# Highlights")

    def test_mutations_do_not_touch_input(self, sample_deck):
        before = parser.serialize(sample_deck)
        parser.remove_slide(sample_deck, 1)
        parser.insert_slide(sample_deck, 0, "# X")
        assert parser.serialize(sample_deck) == before


class TestExtraction:
    """Content extraction helpers."""

    def test_extract_code_blocks(self):
        slide = Slide(content="# Code\n\n```python\nprint('hi')\n```\n\n```\nplain\n```")
        blocks = parser.extract_code_blocks(slide)
        assert blocks == [
            {"language": "python", "code": "print('hi')"},
            {"language": "text", "code": "plain"},
        ]

    def test_extract_code_blocks_with_fence_info(self):
        slide = Slide(content="```ts {1,3}\nconst a = 1\n```\n\n~~~c++\nint b;\n~~~")
        assert parser.extract_code_blocks(slide) == [
            {"language": "ts", "code": "const a = 1"},
            {"language": "c++", "code": "int b;"},
        ]

    def test_extract_images(self):
        slide = Slide(content="![Chart](chart.png) and ![](logo.svg)")
        assert parser.extract_images(slide) == [
            {"alt": "Chart", "src": "chart.png"},
            {"alt": "", "src": "logo.svg"},
        ]

    def test_mermaid_detection(self):
        slide = Slide(content="# Flow\n\n```mermaid\ngraph TD\n  A --> B\n```")
        assert parser.has_mermaid_diagram(slide)
        assert parser.extract_mermaid_diagrams(slide) == ["graph TD\n  A --> B"]

    def test_split_slide_bodies(self):
        bodies = parser.split_slide_bodies("# One\n\nA\n\n---\nlayout: center\n---\n\n# Two\n\nB")
        assert [body.content for body in bodies] == ["# One\n\nA", "# Two\n\nB"]
        assert bodies[1].frontmatter == {"layout": "center"}
