"""
Custom exceptions for the library.
"""
from typing import Any, Dict, Optional


class SlidewrightException(Exception):
    """Base exception for all Slidewright exceptions."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(SlidewrightException):
    """Invalid input rejected before any collaborator call."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, details=details)
        self.field = field


class IndexOutOfRangeError(ValidationError):
    """Slide index outside the range allowed by the operation."""

    def __init__(self, index: int, length: int, allow_end: bool = False):
        upper = length if allow_end else length - 1
        if upper < 0:
            message = f"Invalid slide index: {index} (deck has no slides)"
        else:
            message = f"Invalid slide index: {index} (expected 0..{upper})"
        super().__init__(message, field="slide_index")
        self.index = index
        self.length = length
        self.details.update({"index": index, "length": length})


class CollaboratorError(SlidewrightException):
    """Failure reported by, or while talking to, the generation collaborator."""

    def __init__(self, message: str, service: Optional[str] = None):
        full_message = f"Collaborator error ({service}): {message}" if service else message
        details = {"service": service} if service else {}
        super().__init__(full_message, details=details)
        self.service = service


class CollaboratorTimeoutError(CollaboratorError):
    """Collaborator call exceeded its time budget."""

    def __init__(self, timeout_seconds: float, service: Optional[str] = None):
        super().__init__(f"timed out after {timeout_seconds}s", service=service)
        self.timeout_seconds = timeout_seconds


class ParseError(SlidewrightException):
    """Malformed deck or frontmatter text. Always absorbed by the parser."""

    def __init__(self, message: str, segment: Optional[str] = None):
        details = {"segment": segment[:80]} if segment else {}
        super().__init__(message, details=details)
