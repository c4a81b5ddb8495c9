"""
Structured logging configuration using structlog.
"""
import logging
import sys
from typing import Any, ContextManager, Dict, Optional

import structlog

from slidewright.core.config import Settings, settings


def add_library_context(
    logger: Any,
    method_name: str,
    event_dict: Dict[str, Any],
) -> Dict[str, Any]:
    """Tag events with the library name and version for aggregated logs."""
    event_dict.setdefault("library", settings.APP_NAME.lower())
    event_dict.setdefault("library_version", settings.APP_VERSION)
    return event_dict


def setup_logging(current: Optional[Settings] = None) -> None:
    """
    Configure structured logging for the library.

    Development gets the coloured console renderer; other environments
    render JSON. Debug output is never enabled in production.
    """
    current = current or settings
    debug = current.DEBUG and not current.is_production
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if current.is_development:
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        processors = shared_processors + [
            add_library_context,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (usually __name__ of the module)

    Returns:
        Configured logger instance
    """
    return structlog.get_logger(name)


def log_error_details(
    error: BaseException,
    slide_index: int | None = None,
    **kwargs: Any,
) -> Dict[str, Any]:
    """
    Create a context dict for error logging.

    Args:
        error: Exception instance
        slide_index: Slide the failing operation targeted, if any
        **kwargs: Additional context

    Returns:
        Context dictionary for logging
    """
    context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        **kwargs,
    }

    if slide_index is not None:
        context["slide_index"] = slide_index

    return context


def log_performance_metrics(
    operation: str,
    duration_ms: float,
    success: bool = True,
    **kwargs: Any,
) -> Dict[str, Any]:
    """
    Create a context dict for performance logging.

    Args:
        operation: Operation name
        duration_ms: Duration in milliseconds
        success: Whether operation succeeded
        **kwargs: Additional metrics

    Returns:
        Context dictionary for logging
    """
    return {
        "operation": operation,
        "duration_ms": duration_ms,
        "success": success,
        **kwargs,
    }


def slide_context(slide_index: int | None = None, **kwargs: Any) -> ContextManager[Any]:
    """
    Bind slide-scoped context for every event logged inside the block,
    including events from providers that know nothing about slides.

    None values are left out.
    """
    context = {"slide_index": slide_index, **kwargs}
    return structlog.contextvars.bound_contextvars(
        **{key: value for key, value in context.items() if value is not None}
    )
