"""
Edit orchestrator: the bounded detect-and-regenerate loop around a slide
collaborator, plus single-shot deck operations.
"""
import asyncio
import inspect
import time
from typing import Any, Callable, List, Optional, Tuple

import structlog

from slidewright.core.exceptions import (
    CollaboratorError,
    CollaboratorTimeoutError,
    ValidationError,
)
from slidewright.core.logging import log_error_details, log_performance_metrics, slide_context
from slidewright.domain.schemas.deck import Slide, SlideDeck, SlideInput
from slidewright.domain.schemas.layout import LayoutIssue
from slidewright.services.ai.base import SlideCollaborator
from slidewright.services.ai.content_processor import (
    DIAGRAM_POSITIONS,
    IMAGE_POSITIONS,
    ContentProcessor,
)
from slidewright.services.slides.deck import parser
from slidewright.services.slides.quality.scoring import calculate_layout_score
from slidewright.services.slides.rules.checker import check_deck_layout, check_slide_layout

from .state import (
    DiagramOptions,
    EditResult,
    EditState,
    GenerateOptions,
    ImageOptions,
    OrchestratorConfig,
    ToolCallRecord,
    ToolCallResult,
    ToolType,
)

logger = structlog.get_logger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class EditOrchestrator:
    """
    Coordinates a slide collaborator with the layout detector.

    The orchestrator holds no per-deck state: every operation takes the deck
    it works on and returns a new one, so concurrent edits of different
    decks through one instance do not interact.
    """

    def __init__(
        self,
        collaborator: SlideCollaborator,
        config: Optional[OrchestratorConfig] = None,
        content_processor: Optional[ContentProcessor] = None,
    ):
        self.collaborator = collaborator
        self.config = config or OrchestratorConfig.from_settings()
        self.content_processor = content_processor or ContentProcessor()

    async def edit_slide_with_feedback(
        self,
        deck: SlideDeck,
        slide_index: int,
        instruction: str,
        auto_fix: bool = True,
        max_iterations: Optional[int] = None,
        history: Optional[Any] = None,
    ) -> EditResult:
        """
        Edit one slide and, with ``auto_fix``, keep regenerating it with the
        detected issues until the score reaches the acceptance score or the
        iteration budget is spent.

        Raises:
            ValidationError: bad index, empty instruction or max_iterations < 1
        """
        max_iterations = self.config.max_iterations if max_iterations is None else max_iterations
        slide = parser.get_slide(deck, slide_index)
        if not instruction or not instruction.strip():
            raise ValidationError("Instruction must not be empty", field="instruction")
        if max_iterations < 1:
            raise ValidationError(
                f"max_iterations must be at least 1, got {max_iterations}",
                field="max_iterations",
            )

        start = time.monotonic()
        logger.info(
            "slide_edit_started",
            slide_index=slide_index,
            auto_fix=auto_fix,
            max_iterations=max_iterations,
        )

        state = EditState.INITIAL
        content = slide.content
        issues: List[LayoutIssue] = []
        score: Optional[int] = None
        iterations = 0
        failure: Optional[CollaboratorError] = None

        while not state.is_terminal:
            if state is EditState.INITIAL:
                try:
                    content = await self._invoke(
                        ToolType.EDIT_SLIDE,
                        self.collaborator.generate,
                        slide.content, instruction, [],
                        history=history, slide_index=slide_index, iteration=1,
                    )
                except CollaboratorError as e:
                    failure = e
                    state = EditState.FAILED
                    continue
                iterations = 1
                state = EditState.EDITED

            elif state is EditState.EDITED:
                issues, score = self._evaluate(slide, content)
                state = EditState.CHECKED if auto_fix and issues else EditState.CONVERGED

            elif state is EditState.CHECKED:
                if iterations > 1 and score >= self.config.acceptance_score:
                    state = EditState.CONVERGED
                elif iterations >= max_iterations:
                    state = EditState.EXHAUSTED
                else:
                    state = EditState.FIXING

            elif state is EditState.FIXING:
                try:
                    fixed = await self._invoke(
                        ToolType.EDIT_SLIDE,
                        self.collaborator.generate,
                        content, instruction, list(issues),
                        history=history, slide_index=slide_index, iteration=iterations + 1,
                        issue_count=len(issues),
                    )
                except CollaboratorError as e:
                    failure = e
                    state = EditState.FAILED
                    continue
                content = fixed
                iterations += 1
                issues, score = self._evaluate(slide, content)
                logger.info(
                    "autofix_iteration",
                    slide_index=slide_index,
                    iteration=iterations,
                    issue_count=len(issues),
                    score=score,
                )
                state = EditState.CHECKED

        duration_ms = _elapsed_ms(start)

        if state is EditState.FAILED:
            logger.error(
                "slide_edit_failed",
                iterations=iterations,
                **log_error_details(failure, slide_index=slide_index),
            )
            return EditResult(
                state=state,
                content=content,
                issues=issues,
                iterations=iterations,
                slide_index=slide_index,
                deck=deck,
                score=score,
                error=str(failure),
                error_type=type(failure).__name__,
            )

        logger.info(
            "slide_edit_finished",
            state=state.value,
            iterations=iterations,
            issue_count=len(issues),
            **log_performance_metrics("edit_slide_with_feedback", duration_ms, slide_index=slide_index, score=score),
        )
        return EditResult(
            state=state,
            content=content,
            issues=issues,
            iterations=iterations,
            slide_index=slide_index,
            deck=parser.update_slide(deck, slide_index, content),
            score=score,
        )

    def check_deck_layout(self, deck: SlideDeck, history: Optional[Any] = None) -> ToolCallResult:
        """Detector over every slide, issues concatenated in slide order."""
        start = time.monotonic()
        issues = check_deck_layout(deck.slides, self.config.layout)
        return self._finish(ToolType.CHECK_LAYOUT, start, issues, history=history, issue_count=len(issues))

    def check_slide(self, slide: Slide, history: Optional[Any] = None) -> ToolCallResult:
        start = time.monotonic()
        issues = check_slide_layout(slide, self.config.layout)
        return self._finish(
            ToolType.CHECK_LAYOUT, start, issues,
            history=history, slide_index=slide.index, issue_count=len(issues),
        )

    async def add_diagram_to_slide(
        self,
        deck: SlideDeck,
        slide_index: int,
        options: DiagramOptions,
        history: Optional[Any] = None,
    ) -> ToolCallResult:
        """Generate a Mermaid diagram and splice it into a slide."""
        slide = parser.get_slide(deck, slide_index)
        if not options.description or not options.description.strip():
            raise ValidationError("Diagram description must not be empty", field="description")
        if options.position not in DIAGRAM_POSITIONS:
            raise ValidationError(f"Unknown diagram position: {options.position}", field="position")

        start = time.monotonic()
        try:
            raw = await self._invoke(
                ToolType.GENERATE_DIAGRAM,
                self.collaborator.generate_diagram,
                options.description, options.diagram_type,
                history=history, slide_index=slide_index, clean=False,
            )
        except CollaboratorError as e:
            return self._finish(ToolType.GENERATE_DIAGRAM, start, error=e, history=history, slide_index=slide_index)

        code = self.content_processor.clean_mermaid_code(raw)
        valid, error = self.content_processor.validate_mermaid_syntax(code, options.diagram_type)
        if not valid:
            logger.warning("diagram_rejected", slide_index=slide_index, reason=error)
            return self._finish(
                ToolType.GENERATE_DIAGRAM, start, error=CollaboratorError(error),
                history=history, slide_index=slide_index,
            )

        content = self.content_processor.insert_diagram_into_slide(
            slide.content,
            self.content_processor.format_mermaid_markdown(code),
            options.position,
        )
        updated = parser.update_slide(deck, slide_index, content)
        return self._finish(ToolType.GENERATE_DIAGRAM, start, updated, history=history, slide_index=slide_index)

    async def add_image_to_slide(
        self,
        deck: SlideDeck,
        slide_index: int,
        options: ImageOptions,
        history: Optional[Any] = None,
    ) -> ToolCallResult:
        """Obtain an image reference and splice ``![alt](ref)`` into a slide."""
        slide = parser.get_slide(deck, slide_index)
        if not options.prompt or not options.prompt.strip():
            raise ValidationError("Image prompt must not be empty", field="prompt")
        if options.position not in IMAGE_POSITIONS:
            raise ValidationError(f"Unknown image position: {options.position}", field="position")

        start = time.monotonic()
        try:
            reference = await self._invoke(
                ToolType.GENERATE_IMAGE,
                self.collaborator.generate_image_reference,
                options.prompt,
                history=history, slide_index=slide_index, clean=False,
            )
        except CollaboratorError as e:
            return self._finish(ToolType.GENERATE_IMAGE, start, error=e, history=history, slide_index=slide_index)

        markdown = self.content_processor.format_image_markdown(reference.strip(), options.alt or options.prompt)
        content = self.content_processor.insert_image_into_slide(slide.content, markdown, options.position)
        updated = parser.update_slide(deck, slide_index, content)
        return self._finish(ToolType.GENERATE_IMAGE, start, updated, history=history, slide_index=slide_index)

    async def split_slide(
        self,
        deck: SlideDeck,
        slide_index: int,
        history: Optional[Any] = None,
    ) -> ToolCallResult:
        """
        Ask the collaborator to split an overcrowded slide.

        The slide is replaced by the first returned body and the remaining
        bodies are inserted right after it, in order.
        """
        slide = parser.get_slide(deck, slide_index)
        issues = check_slide_layout(slide, self.config.layout)

        start = time.monotonic()
        try:
            raw = await self._invoke(
                ToolType.SPLIT_SLIDE,
                self.collaborator.split,
                slide.content, issues,
                history=history, slide_index=slide_index, issue_count=len(issues),
            )
        except CollaboratorError as e:
            return self._finish(ToolType.SPLIT_SLIDE, start, error=e, history=history, slide_index=slide_index)

        bodies = parser.split_slide_bodies(raw)
        if not bodies:
            return self._finish(
                ToolType.SPLIT_SLIDE, start, error=CollaboratorError("Split response contained no slides"),
                history=history, slide_index=slide_index,
            )

        first = bodies[0]
        updated = parser.remove_slide(deck, slide_index)
        updated = parser.insert_slide(updated, slide_index, SlideInput(
            content=first.content,
            frontmatter=first.frontmatter if first.frontmatter is not None else slide.frontmatter,
            notes=first.notes if first.notes is not None else slide.notes,
        ))
        for offset, body in enumerate(bodies[1:], start=1):
            updated = parser.insert_slide(updated, slide_index + offset, body)

        logger.info("slide_split", slide_index=slide_index, new_slide_count=len(bodies))
        return self._finish(ToolType.SPLIT_SLIDE, start, updated, history=history, slide_index=slide_index)

    async def fix_slide_layout(
        self,
        deck: SlideDeck,
        slide_index: int,
        history: Optional[Any] = None,
    ) -> ToolCallResult:
        """One repair call for the slide's current issues; no loop."""
        slide = parser.get_slide(deck, slide_index)
        issues = check_slide_layout(slide, self.config.layout)

        start = time.monotonic()
        if not issues:
            return self._finish(ToolType.FIX_LAYOUT, start, deck, history=history, slide_index=slide_index)

        try:
            fixed = await self._invoke(
                ToolType.FIX_LAYOUT,
                self.collaborator.fix_layout,
                slide.content, issues,
                history=history, slide_index=slide_index, issue_count=len(issues),
            )
        except CollaboratorError as e:
            return self._finish(ToolType.FIX_LAYOUT, start, error=e, history=history, slide_index=slide_index)

        updated = parser.update_slide(deck, slide_index, fixed)
        return self._finish(
            ToolType.FIX_LAYOUT, start, updated,
            history=history, slide_index=slide_index, issue_count=len(issues),
        )

    async def generate_presentation(
        self,
        options: GenerateOptions,
        history: Optional[Any] = None,
    ) -> ToolCallResult:
        """Generate a whole deck and parse it."""
        if not options.topic or not options.topic.strip():
            raise ValidationError("Topic must not be empty", field="topic")
        if options.slide_count < 1:
            raise ValidationError("slide_count must be at least 1", field="slide_count")

        start = time.monotonic()
        try:
            markdown = await self._invoke(
                ToolType.GENERATE_SLIDES,
                self.collaborator.generate_deck,
                options.topic, options.slide_count, options.language, options.style, options.include_notes,
                history=history,
            )
        except CollaboratorError as e:
            return self._finish(ToolType.GENERATE_SLIDES, start, error=e, history=history)

        deck = parser.parse(markdown)
        if options.theme and "theme" not in deck.frontmatter:
            deck = deck.model_copy(update={"frontmatter": {"theme": options.theme, **deck.frontmatter}})

        issues = check_deck_layout(deck.slides, self.config.layout)
        logger.info("presentation_generated", slide_count=deck.slide_count, issue_count=len(issues))
        return self._finish(ToolType.GENERATE_SLIDES, start, deck, history=history, issue_count=len(issues))

    def import_markdown(self, text: str, history: Optional[Any] = None) -> SlideDeck:
        start = time.monotonic()
        deck = parser.parse(text)
        self._record(history, ToolType.IMPORT_MARKDOWN, True, _elapsed_ms(start))
        return deck

    def export_markdown(self, deck: SlideDeck, history: Optional[Any] = None) -> str:
        start = time.monotonic()
        markdown = parser.serialize(deck)
        self._record(history, ToolType.EXPORT_MARKDOWN, True, _elapsed_ms(start))
        return markdown

    def _evaluate(self, slide: Slide, content: str) -> Tuple[List[LayoutIssue], int]:
        candidate = Slide(
            index=slide.index,
            content=content,
            frontmatter=slide.frontmatter,
            layout=slide.layout,
            notes=slide.notes,
        )
        issues = check_slide_layout(candidate, self.config.layout)
        return issues, calculate_layout_score(issues, self.config.weights)

    async def _invoke(
        self,
        tool: ToolType,
        method: Callable[..., Any],
        *args: Any,
        history: Optional[Any] = None,
        slide_index: Optional[int] = None,
        iteration: Optional[int] = None,
        issue_count: int = 0,
        clean: bool = True,
    ) -> str:
        """
        Call the collaborator, drain its response and clean it.

        Every failure surfaces as ``CollaboratorError``; cancellation is
        never converted.
        """
        start = time.monotonic()
        service = type(self.collaborator).__name__
        try:
            try:
                with slide_context(slide_index, tool=tool.value, iteration=iteration):
                    text = await asyncio.wait_for(self._resolve(method(*args)), self.config.timeout_seconds)
            except asyncio.TimeoutError as e:
                raise CollaboratorTimeoutError(self.config.timeout_seconds, service=service) from e
            except CollaboratorError:
                raise
            except Exception as e:
                raise CollaboratorError(str(e) or type(e).__name__, service=service) from e

            if clean:
                text = self.content_processor.clean_markdown_output(text)
            if not text.strip():
                raise CollaboratorError("Empty or malformed response", service=service)
        except CollaboratorError as e:
            self._record(
                history, tool, False, _elapsed_ms(start),
                slide_index=slide_index, iteration=iteration, issue_count=issue_count, error=str(e),
            )
            raise

        self._record(
            history, tool, True, _elapsed_ms(start),
            slide_index=slide_index, iteration=iteration, issue_count=issue_count,
        )
        return text

    @staticmethod
    async def _resolve(response: Any) -> str:
        """Await and fully drain a collaborator response into one string."""
        if inspect.isawaitable(response):
            response = await response

        if isinstance(response, str):
            return response

        parts: List[str] = []
        if hasattr(response, "__aiter__"):
            async for item in response:
                if isinstance(item, str):
                    parts.append(item)
        elif hasattr(response, "__iter__"):
            for item in response:
                if isinstance(item, str):
                    parts.append(item)
        else:
            raise CollaboratorError(f"Unsupported response type: {type(response).__name__}")
        return "".join(parts)

    def _finish(
        self,
        tool: ToolType,
        start: float,
        data: Any = None,
        error: Optional[Exception] = None,
        history: Optional[Any] = None,
        slide_index: Optional[int] = None,
        issue_count: int = 0,
    ) -> ToolCallResult:
        duration_ms = _elapsed_ms(start)
        if error is not None:
            logger.warning(
                "tool_call_failed",
                tool=tool.value,
                **log_error_details(error, slide_index=slide_index),
            )
            return ToolCallResult(tool=tool, success=False, error=str(error), duration_ms=duration_ms)

        if tool is ToolType.CHECK_LAYOUT:
            self._record(history, tool, True, duration_ms, slide_index=slide_index, issue_count=issue_count)
        logger.debug("tool_call_complete", **log_performance_metrics(tool.value, duration_ms, slide_index=slide_index))
        return ToolCallResult(tool=tool, success=True, data=data, duration_ms=duration_ms)

    @staticmethod
    def _record(history: Optional[Any], tool: ToolType, success: bool, duration_ms: int, **kwargs: Any) -> None:
        if history is None:
            return
        history.append(ToolCallRecord(tool=tool, success=success, duration_ms=duration_ms, **kwargs))
