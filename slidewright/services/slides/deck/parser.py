"""
Slidev markdown parser and serializer.

A deck is a plain-text document: an optional top-level YAML frontmatter
block, then slide bodies separated by bare ``---`` lines. A slide may open
with its own frontmatter block (the separator doubles as the opening
delimiter) and may end with speaker notes introduced by ``<!-- notes -->``.

Parsing is total: malformed frontmatter never raises, the offending block
is treated as ordinary slide content instead. All deck mutations are pure
and return a new ``SlideDeck`` with contiguous 0-based indices.
"""
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import structlog
import yaml

from slidewright.core.exceptions import IndexOutOfRangeError, ParseError
from slidewright.domain.schemas.deck import Slide, SlideDeck, SlideInput

logger = structlog.get_logger(__name__)

SLIDE_SEPARATOR = "---"
NOTES_MARKER = "<!-- notes -->"

NOTES_MARKER_PATTERN = re.compile(r"<!--\s*notes?\s*-->", re.IGNORECASE)
FRONTMATTER_KEY_PATTERN = re.compile(r"^[A-Za-z_][\w\-]*\s*:(\s|$)")
HEADING_LINE_PATTERN = re.compile(r"^#+\s")
FENCE_OPEN_PATTERN = re.compile(r"^\s*(`{3,}|~{3,})")
CODE_BLOCK_PATTERN = re.compile(r"^[ \t]*(`{3,}|~{3,})([\w+-]*)[^\n]*\n([\s\S]*?)^[ \t]*\1[ \t]*$", re.MULTILINE)
IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
MERMAID_BLOCK_PATTERN = re.compile(r"```mermaid\n([\s\S]*?)```", re.IGNORECASE)

SlideLike = Union[Slide, SlideInput, Dict[str, Any], str]


def _is_separator(line: str) -> bool:
    return line.rstrip() == SLIDE_SEPARATOR


def _load_frontmatter(block: str) -> Dict[str, Any]:
    """Load a YAML frontmatter block, raising ParseError unless it is a mapping."""
    if not block.strip():
        return {}
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as e:
        raise ParseError(f"Invalid frontmatter YAML: {e}", segment=block) from e
    if not isinstance(data, dict):
        raise ParseError("Frontmatter is not a mapping", segment=block)
    return data


def _dump_frontmatter(data: Dict[str, Any]) -> str:
    yaml_text = yaml.safe_dump(
        data,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    ).rstrip("\n")
    return f"{SLIDE_SEPARATOR}\n{yaml_text}\n{SLIDE_SEPARATOR}"


def _read_slide_frontmatter(lines: Sequence[str], start: int) -> Tuple[Optional[Dict[str, Any]], int]:
    """
    Try to read a per-slide frontmatter block whose YAML starts at ``start``.

    Returns the mapping and the index of the closing separator, or
    ``(None, start)`` when the lines there are not a frontmatter block.
    """
    if start >= len(lines) or not FRONTMATTER_KEY_PATTERN.match(lines[start]):
        return None, start

    for end in range(start, len(lines)):
        if _is_separator(lines[end]):
            if any(HEADING_LINE_PATTERN.match(line) for line in lines[start:end]):
                return None, start
            block = "\n".join(lines[start:end])
            try:
                data = _load_frontmatter(block)
            except ParseError as e:
                logger.debug("slide_frontmatter_fallback", reason=e.message)
                return None, start
            if not data:
                return None, start
            return data, end

    return None, start


def _split_global_frontmatter(text: str) -> Tuple[Dict[str, Any], str]:
    lines = text.split("\n")
    if not lines or not _is_separator(lines[0]):
        return {}, text

    for end in range(1, len(lines)):
        if _is_separator(lines[end]):
            block = "\n".join(lines[1:end])
            try:
                data = _load_frontmatter(block)
            except ParseError as e:
                logger.debug("deck_frontmatter_fallback", reason=e.message)
                return {}, text
            if not data and block.strip():
                # Non-empty block that loads as nothing (comments only): slide text
                return {}, text
            return data, "\n".join(lines[end + 1:])

    return {}, text


def _split_segments(body: str) -> List[Tuple[Optional[Dict[str, Any]], str]]:
    """Split a deck body into ``(frontmatter, text)`` segments on bare separators."""
    lines = body.split("\n")
    segments: List[Tuple[Optional[Dict[str, Any]], str]] = []
    current_frontmatter: Optional[Dict[str, Any]] = None
    current: List[str] = []
    fence: Optional[str] = None

    i = 0
    while i < len(lines):
        line = lines[i]

        if fence is not None:
            current.append(line)
            stripped = line.strip()
            if stripped.startswith(fence) and not stripped.strip(fence[0]):
                fence = None
            i += 1
            continue

        fence_match = FENCE_OPEN_PATTERN.match(line)
        if fence_match:
            fence = fence_match.group(1)
            current.append(line)
            i += 1
            continue

        if _is_separator(line):
            segments.append((current_frontmatter, "\n".join(current)))
            current_frontmatter, current = None, []
            frontmatter, closing = _read_slide_frontmatter(lines, i + 1)
            if frontmatter is not None:
                current_frontmatter = frontmatter
                i = closing
            i += 1
            continue

        current.append(line)
        i += 1

    segments.append((current_frontmatter, "\n".join(current)))
    return segments


def _split_notes(text: str) -> Tuple[str, Optional[str]]:
    match = NOTES_MARKER_PATTERN.search(text)
    if not match:
        return text.strip(), None
    notes = text[match.end():].strip()
    return text[:match.start()].strip(), notes or None


def _build_slide(index: int, frontmatter: Optional[Dict[str, Any]], text: str) -> Optional[Slide]:
    content, notes = _split_notes(text)
    if not content and not notes and not frontmatter:
        return None
    return Slide(index=index, content=content, frontmatter=frontmatter or None, notes=notes)


def parse_slide_body(text: str) -> SlideInput:
    """
    Parse a single slide body that may carry its own frontmatter and notes.

    Malformed frontmatter falls back to plain content.
    """
    normalized = text.replace("\r\n", "\n").replace("\r", "\n").strip()
    lines = normalized.split("\n")
    frontmatter: Optional[Dict[str, Any]] = None

    if lines and _is_separator(lines[0]):
        frontmatter, closing = _read_slide_frontmatter(lines, 1)
        if frontmatter is not None:
            normalized = "\n".join(lines[closing + 1:])

    content, notes = _split_notes(normalized)
    return SlideInput(content=content, frontmatter=frontmatter, notes=notes)


def parse(text: str) -> SlideDeck:
    """
    Parse a Slidev markdown document into a SlideDeck.

    Args:
        text: Raw markdown content

    Returns:
        Parsed SlideDeck; an empty body yields zero slides
    """
    normalized = text.replace("\r\n", "\n").replace("\r", "\n").strip()
    frontmatter, body = _split_global_frontmatter(normalized)

    slides: List[Slide] = []
    body = body.strip()
    if body:
        for segment_frontmatter, segment_text in _split_segments(body):
            slide = _build_slide(len(slides), segment_frontmatter, segment_text)
            if slide is not None:
                slides.append(slide)

    logger.debug("deck_parsed", slide_count=len(slides), has_frontmatter=bool(frontmatter))

    return SlideDeck(frontmatter=frontmatter, slides=slides, raw=normalized)


def split_slide_bodies(text: str) -> List[SlideInput]:
    """Split generated text holding several slides into slide inputs."""
    normalized = text.replace("\r\n", "\n").replace("\r", "\n").strip()
    bodies = []
    for frontmatter, segment_text in _split_segments(normalized):
        content, notes = _split_notes(segment_text)
        if content or notes or frontmatter:
            bodies.append(SlideInput(content=content, frontmatter=frontmatter, notes=notes))
    return bodies


def _serialize_slide(slide: Slide) -> str:
    parts: List[str] = []
    if slide.frontmatter:
        parts.append(_dump_frontmatter(slide.frontmatter))
    if slide.content:
        parts.append(slide.content)
    if slide.notes:
        parts.append(f"{NOTES_MARKER}\n{slide.notes}")
    return "\n\n".join(parts)


def serialize(deck: SlideDeck) -> str:
    """
    Serialize a SlideDeck back to Slidev markdown.

    Slides with their own frontmatter open with that block, which doubles as
    the slide separator; other slides are preceded by a bare separator.
    """
    chunks: List[str] = []

    if deck.frontmatter:
        chunks.append(_dump_frontmatter(deck.frontmatter))
    elif deck.slides and deck.slides[0].frontmatter:
        # Keeps the first slide's block from being read back as deck frontmatter
        chunks.append(f"{SLIDE_SEPARATOR}\n{SLIDE_SEPARATOR}")

    for position, slide in enumerate(deck.slides):
        if position > 0 and not slide.frontmatter:
            chunks.append(SLIDE_SEPARATOR)
        chunks.append(_serialize_slide(slide))

    return "\n\n".join(chunks) + "\n"


def _reindex(slides: Sequence[Slide]) -> List[Slide]:
    return [slide if slide.index == i else slide.model_copy(update={"index": i}) for i, slide in enumerate(slides)]


def _check_index(deck: SlideDeck, index: int, allow_end: bool = False) -> None:
    upper = len(deck.slides) if allow_end else len(deck.slides) - 1
    if not isinstance(index, int) or isinstance(index, bool) or index < 0 or index > upper:
        raise IndexOutOfRangeError(index, len(deck.slides), allow_end=allow_end)


def _coerce_slide_input(slide: SlideLike) -> SlideInput:
    if isinstance(slide, str):
        return parse_slide_body(slide)
    if isinstance(slide, SlideInput):
        return slide
    if isinstance(slide, Slide):
        return SlideInput(
            content=slide.content,
            frontmatter=slide.frontmatter,
            layout=slide.layout,
            notes=slide.notes,
        )
    return SlideInput(**slide)


def get_slide(deck: SlideDeck, index: int) -> Slide:
    """Get a slide by index."""
    _check_index(deck, index)
    return deck.slides[index]


def get_slide_count(deck: SlideDeck) -> int:
    return len(deck.slides)


def update_slide(deck: SlideDeck, index: int, content: str) -> SlideDeck:
    """
    Replace a slide's content, returning a new deck.

    Frontmatter or notes embedded in ``content`` replace the slide's own;
    otherwise the existing frontmatter and notes are kept.
    """
    _check_index(deck, index)
    body = parse_slide_body(content)
    current = deck.slides[index]

    replacement = Slide(
        index=index,
        content=body.content,
        frontmatter=body.frontmatter if body.frontmatter is not None else current.frontmatter,
        notes=body.notes if body.notes is not None else current.notes,
    )

    slides = list(deck.slides)
    slides[index] = replacement
    return deck.model_copy(update={"slides": _reindex(slides)})


def insert_slide(deck: SlideDeck, index: int, slide: SlideLike) -> SlideDeck:
    """Insert a slide at ``index`` (``0..len``), returning a new deck."""
    _check_index(deck, index, allow_end=True)
    data = _coerce_slide_input(slide)

    new_slide = Slide(
        index=index,
        content=data.content.strip(),
        frontmatter=data.frontmatter,
        layout=data.layout,
        notes=data.notes,
    )

    slides = list(deck.slides)
    slides.insert(index, new_slide)
    return deck.model_copy(update={"slides": _reindex(slides)})


def remove_slide(deck: SlideDeck, index: int) -> SlideDeck:
    """Remove the slide at ``index``, returning a new deck."""
    _check_index(deck, index)
    slides = [slide for i, slide in enumerate(deck.slides) if i != index]
    return deck.model_copy(update={"slides": _reindex(slides)})


def extract_code_blocks(slide: Slide) -> List[Dict[str, str]]:
    """Extract fenced code blocks as ``{"language", "code"}`` dicts."""
    return [
        {"language": match.group(2) or "text", "code": match.group(3).strip()}
        for match in CODE_BLOCK_PATTERN.finditer(slide.content)
    ]


def extract_images(slide: Slide) -> List[Dict[str, str]]:
    """Extract markdown images as ``{"alt", "src"}`` dicts."""
    return [
        {"alt": match.group(1), "src": match.group(2)}
        for match in IMAGE_PATTERN.finditer(slide.content)
    ]


def has_mermaid_diagram(slide: Slide) -> bool:
    return re.search(r"```mermaid", slide.content, re.IGNORECASE) is not None


def extract_mermaid_diagrams(slide: Slide) -> List[str]:
    return [match.group(1).strip() for match in MERMAID_BLOCK_PATTERN.finditer(slide.content)]
