"""
Post-processing for collaborator output: markdown cleanup, Mermaid
extraction and validation, and splicing diagrams or images into slides.
"""
import re
from typing import Dict, List, Optional, Tuple

import structlog

logger = structlog.get_logger(__name__)

MARKDOWN_FENCE_TAGS = frozenset({"markdown", "md", "slidev"})
MAX_PREFIX_LENGTH = 100

# Lines starting like these are slide content, not an explanatory preamble.
STRUCTURAL_PREFIX_PATTERN = re.compile(r"^(#|[-*+>|!<`~]|\d+[.)]\s)")
FENCE_LINE_PATTERN = re.compile(r"^\s*```")
OPENING_FENCE_PATTERN = re.compile(r"^```([\w-]*)[ \t]*$")
MERMAID_BLOCK_PATTERN = re.compile(r"```mermaid[\s\S]*?```", re.IGNORECASE)

MERMAID_KEYWORDS = [
    "flowchart", "graph", "sequenceDiagram", "classDiagram",
    "stateDiagram", "erDiagram", "gantt", "pie", "mindmap",
    "journey", "gitGraph", "C4Context", "timeline",
]

DIAGRAM_TYPE_KEYWORDS: Dict[str, List[str]] = {
    "flowchart": ["flowchart", "graph"],
    "sequence": ["sequencediagram"],
    "class": ["classdiagram"],
    "state": ["statediagram"],
    "er": ["erdiagram"],
    "gantt": ["gantt"],
    "pie": ["pie"],
    "mindmap": ["mindmap"],
}

DIAGRAM_POSITIONS = ("start", "end", "replace")
IMAGE_POSITIONS = ("start", "end", "after-title")


class ContentProcessor:
    """Cleans and reshapes text returned by the generation collaborator."""

    def clean_markdown_output(self, text: str) -> str:
        """
        Normalize a collaborator response into plain slide markdown.

        Strips one outer code fence when the whole response is wrapped in
        one, then drops a short single-line explanation that precedes the
        first slide separator. Already-clean text comes back unchanged
        (apart from surrounding whitespace).
        """
        cleaned = (text or "").strip()
        cleaned = self._strip_outer_fence(cleaned)
        cleaned = self._strip_explanation_prefix(cleaned)
        return cleaned

    def _strip_outer_fence(self, text: str) -> str:
        lines = text.split("\n")
        if len(lines) < 2 or lines[-1].strip() != "```":
            return text

        opening = OPENING_FENCE_PATTERN.match(lines[0].strip())
        if not opening:
            return text

        tag = opening.group(1).lower()
        inner = lines[1:-1]

        if tag in MARKDOWN_FENCE_TAGS:
            return "\n".join(inner).strip()

        # A language-tagged block is slide content (a code-only slide).
        if tag or any(FENCE_LINE_PATTERN.match(line) for line in inner):
            return text
        return "\n".join(inner).strip()

    def _strip_explanation_prefix(self, text: str) -> str:
        lines = text.split("\n")
        separator_at = next((i for i, line in enumerate(lines) if line.strip() == "---"), None)
        if not separator_at:
            return text

        prefix = "\n".join(lines[:separator_at]).strip()
        if not prefix or "\n" in prefix or len(prefix) >= MAX_PREFIX_LENGTH:
            return text
        if STRUCTURAL_PREFIX_PATTERN.match(prefix):
            return text

        logger.debug("collaborator_preamble_stripped", prefix=prefix)
        return "\n".join(lines[separator_at:])

    def clean_mermaid_code(self, text: str) -> str:
        """Extract bare Mermaid source from a fenced or chatty response."""
        cleaned = (text or "").strip()

        if cleaned.startswith("```"):
            cleaned = re.sub(r"^```[\w-]*\n?", "", cleaned)
            cleaned = re.sub(r"\n?```\s*$", "", cleaned)

        lines = cleaned.split("\n")
        start = next(
            (
                i for i, line in enumerate(lines)
                if any(line.strip().startswith(keyword) for keyword in MERMAID_KEYWORDS)
            ),
            -1,
        )
        if start > 0:
            cleaned = "\n".join(lines[start:])

        return cleaned.strip()

    def validate_mermaid_syntax(
        self,
        code: str,
        expected_type: Optional[str] = None,
    ) -> Tuple[bool, Optional[str]]:
        """Basic structural check of Mermaid source: (valid, error)."""
        if not code or not code.strip():
            return False, "Empty Mermaid code"

        first_line = code.strip().split("\n")[0].lower()
        if not any(keyword.lower() in first_line for keyword in MERMAID_KEYWORDS):
            return False, "Invalid Mermaid syntax: missing diagram type declaration"

        expected = DIAGRAM_TYPE_KEYWORDS.get(expected_type or "", [])
        if expected and not any(keyword in first_line for keyword in expected):
            return False, f"Expected {expected_type} diagram but got different type"

        return True, None

    @staticmethod
    def format_mermaid_markdown(code: str) -> str:
        return f"```mermaid\n{code.strip()}\n```"

    @staticmethod
    def format_image_markdown(src: str, alt: str = "Generated image") -> str:
        clean_alt = re.sub(r"[\[\]]", "", alt).replace("\n", " ")[:100]
        return f"![{clean_alt}]({src})"

    def insert_diagram_into_slide(self, content: str, diagram_markdown: str, position: str = "end") -> str:
        """
        Splice a Mermaid block into slide content.

        ``replace`` swaps every existing Mermaid block for the new one and
        appends it when the slide has none.
        """
        if position == "start":
            return f"{diagram_markdown}\n\n{content}"
        if position == "replace":
            if MERMAID_BLOCK_PATTERN.search(content):
                return MERMAID_BLOCK_PATTERN.sub(lambda _: diagram_markdown, content)
            return f"{content}\n\n{diagram_markdown}"
        return f"{content}\n\n{diagram_markdown}"

    def insert_image_into_slide(self, content: str, image_markdown: str, position: str = "end") -> str:
        if position == "start":
            return f"{image_markdown}\n\n{content}"
        if position == "after-title":
            lines = content.split("\n")
            title_at = next((i for i, line in enumerate(lines) if re.match(r"^#{1,3}\s", line)), None)
            if title_at is None:
                return f"{image_markdown}\n\n{content}"
            lines[title_at + 1:title_at + 1] = ["", image_markdown]
            return "\n".join(lines)
        return f"{content}\n\n{image_markdown}"
