"""Slidev markdown parsing, serialization and deck mutation."""

from .parser import (
    NOTES_MARKER,
    SLIDE_SEPARATOR,
    extract_code_blocks,
    extract_images,
    extract_mermaid_diagrams,
    get_slide,
    get_slide_count,
    has_mermaid_diagram,
    insert_slide,
    parse,
    parse_slide_body,
    remove_slide,
    serialize,
    split_slide_bodies,
    update_slide,
)

__all__ = [
    "NOTES_MARKER",
    "SLIDE_SEPARATOR",
    "extract_code_blocks",
    "extract_images",
    "extract_mermaid_diagrams",
    "get_slide",
    "get_slide_count",
    "has_mermaid_diagram",
    "insert_slide",
    "parse",
    "parse_slide_body",
    "remove_slide",
    "serialize",
    "split_slide_bodies",
    "update_slide",
]
