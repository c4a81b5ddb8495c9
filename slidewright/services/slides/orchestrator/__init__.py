"""Feedback-driven slide edit orchestrator package."""

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
from .coordinator import EditOrchestrator

__all__ = [
    "DiagramOptions",
    "EditOrchestrator",
    "EditResult",
    "EditState",
    "GenerateOptions",
    "ImageOptions",
    "OrchestratorConfig",
    "ToolCallRecord",
    "ToolCallResult",
    "ToolType",
]
