"""Error codes and error handling utilities for Notedash."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes for theme and override operations."""

    # Path errors
    PATH_EMPTY = auto()
    PATH_ILLEGAL_CHARACTER = auto()
    PATH_EMPTY_SEGMENT = auto()
    PATH_DOT_SEGMENT = auto()
    PATH_COLLISION = auto()

    # Lookup errors
    THEME_NOT_FOUND = auto()
    TEMPLATE_NOT_FOUND = auto()

    # Operation errors
    THEME_PROTECTED = auto()
    OPERATION_UNSUPPORTED = auto()
    OPERATION_MISSING_PARAMETER = auto()
    OPERATION_PARTIAL = auto()

    # Storage errors
    PERSISTENCE_FAILED = auto()
    IMPORT_INVALID = auto()
    CONFIG_INVALID = auto()


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.PATH_EMPTY: "Theme path cannot be empty.",
    ErrorCode.PATH_ILLEGAL_CHARACTER: "Theme path contains an illegal character.",
    ErrorCode.PATH_EMPTY_SEGMENT: "Theme path segments cannot be empty.",
    ErrorCode.PATH_DOT_SEGMENT: "Theme path segments cannot start or end with a dot.",
    ErrorCode.PATH_COLLISION: "Another theme already uses this path.",

    ErrorCode.THEME_NOT_FOUND: "Item not found. The theme may have been deleted.",
    ErrorCode.TEMPLATE_NOT_FOUND: "Item not found. The template may have been deleted.",

    ErrorCode.THEME_PROTECTED: "Built-in themes cannot be deleted or archived.",
    ErrorCode.OPERATION_UNSUPPORTED: "This operation is not supported for the selection.",
    ErrorCode.OPERATION_MISSING_PARAMETER: "This operation needs an extra value to run.",
    ErrorCode.OPERATION_PARTIAL: "Operation completed with some errors. Review the log.",

    ErrorCode.PERSISTENCE_FAILED: "Changes were applied but could not be saved. They may be lost on reload.",
    ErrorCode.IMPORT_INVALID: "The import file is not a valid theme configuration.",
    ErrorCode.CONFIG_INVALID: "Stored theme configuration is invalid. Using defaults.",
}


@dataclass
class NotedashError(Exception):
    """Base exception for Notedash with error code and context."""

    code: ErrorCode
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""

    def __post_init__(self) -> None:
        if not self.message:
            self.message = ERROR_MESSAGES.get(self.code, "An unexpected error occurred.")
        if not self.suggestion and self.code in ERROR_MESSAGES:
            self.suggestion = ERROR_MESSAGES[self.code]

    def __str__(self) -> str:
        parts = [self.message]
        if self.details:
            details_str = " | ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"\nDetails: {details_str}")
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging or UI display."""
        return {
            "code": self.code.name,
            "message": self.message,
            "details": self.details,
            "suggestion": self.suggestion,
        }


class ThemeValidationError(NotedashError):
    """Raised when a theme path or operation argument is invalid."""


class ThemeCollisionError(NotedashError):
    """Raised when a path is already used by a different theme."""


class ThemeNotFoundError(NotedashError):
    """Raised when an id or path does not match any theme or template."""


class ProtectedThemeError(NotedashError):
    """Raised when a destructive operation targets an originally predefined theme."""


class PersistenceError(NotedashError):
    """Raised when the durable save of theme state fails."""


class BatchOperationError(NotedashError):
    """Raised when a batch operation cannot run for its targets."""


def format_error_for_user(error: NotedashError | Exception) -> str:
    """Format an error for display to the user with actionable suggestions."""
    if isinstance(error, NotedashError):
        parts = [error.message]
        if error.suggestion and error.suggestion != error.message:
            parts.append(f"\n\n{error.suggestion}")
        return "".join(parts)
    return f"{type(error).__name__}: {error}"
