"""State, result and option types for the edit orchestrator."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from slidewright.core.config import get_settings
from slidewright.domain.schemas.deck import SlideDeck
from slidewright.domain.schemas.layout import LayoutCheckConfig, LayoutIssue, ScoreWeights


class EditState(str, Enum):
    """States of the feedback-driven edit loop."""
    INITIAL = "initial"
    EDITED = "edited"
    CHECKED = "checked"
    FIXING = "fixing"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({EditState.CONVERGED, EditState.EXHAUSTED, EditState.FAILED})
SUCCESS_STATES = frozenset({EditState.CONVERGED, EditState.EXHAUSTED})


class ToolType(str, Enum):
    """Operations the orchestrator performs."""
    EDIT_SLIDE = "edit_slide"
    FIX_LAYOUT = "fix_layout"
    CHECK_LAYOUT = "check_layout"
    GENERATE_DIAGRAM = "generate_diagram"
    GENERATE_IMAGE = "generate_image"
    SPLIT_SLIDE = "split_slide"
    GENERATE_SLIDES = "generate_slides"
    IMPORT_MARKDOWN = "import_markdown"
    EXPORT_MARKDOWN = "export_markdown"


@dataclass
class OrchestratorConfig:
    """Configuration for the edit orchestrator."""
    max_iterations: int = 3
    acceptance_score: int = 80
    timeout_seconds: Optional[float] = 120.0
    layout: LayoutCheckConfig = field(default_factory=LayoutCheckConfig)
    weights: ScoreWeights = field(default_factory=ScoreWeights)

    @classmethod
    def from_settings(cls) -> "OrchestratorConfig":
        settings = get_settings()
        return cls(
            max_iterations=settings.AUTOFIX_MAX_ITERATIONS,
            acceptance_score=settings.AUTOFIX_ACCEPTANCE_SCORE,
            timeout_seconds=settings.AI_TIMEOUT_SECONDS,
            layout=LayoutCheckConfig.from_settings(),
            weights=ScoreWeights.from_settings(),
        )


@dataclass
class EditResult:
    """
    Outcome of one feedback-driven edit.

    ``content`` is the last content that was successfully produced (the
    original slide content when the first call failed). ``deck`` carries the
    edited slide on success and is the caller's deck, untouched, otherwise.
    """
    state: EditState
    content: str
    issues: List[LayoutIssue]
    iterations: int
    slide_index: int
    deck: SlideDeck
    score: Optional[int] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.state in SUCCESS_STATES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "success": self.success,
            "content": self.content,
            "issues": [issue.model_dump(by_alias=True, exclude_none=True) for issue in self.issues],
            "iterations": self.iterations,
            "score": self.score,
            "slide_index": self.slide_index,
            "error": self.error,
            "error_type": self.error_type,
        }


@dataclass
class ToolCallResult:
    """Result of a single non-looping operation."""
    tool: ToolType
    success: bool
    data: Any = None
    error: Optional[str] = None
    duration_ms: int = 0


@dataclass
class ToolCallRecord:
    """One entry in a caller-supplied history sink."""
    tool: ToolType
    success: bool
    duration_ms: int
    slide_index: Optional[int] = None
    iteration: Optional[int] = None
    issue_count: int = 0
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class DiagramOptions:
    description: str
    diagram_type: str = "flowchart"
    position: str = "end"


@dataclass
class ImageOptions:
    prompt: str
    alt: Optional[str] = None
    position: str = "end"


@dataclass
class GenerateOptions:
    """Options for whole-deck generation."""
    topic: str
    slide_count: int = 10
    theme: Optional[str] = None
    language: str = "en"
    style: str = "professional"
    include_notes: bool = False
