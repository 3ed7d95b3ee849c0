from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gqmeta.validation import ValidationIssue


class GQMetaError(Exception):
    """Base class for every error raised by gqmeta."""


class AnnotationError(GQMetaError, TypeError):
    """Raised when a marker is applied at a call site it does not support.

    For example ``ctx()`` decorating a class, or ``arg()`` decorating a method
    instead of annotating one of its parameters.
    """


class RegistryValidationError(GQMetaError, ValueError):
    """Raised by the strict validation layer when error-severity issues are found."""

    def __init__(self, issues: list["ValidationIssue"]) -> None:
        self.issues = issues
        details = "; ".join(issue.message for issue in issues)
        super().__init__(f"Found {len(issues)} registry validation error(s): {details}")


# Error message constants for consistent messaging and testability
class AnnotationErrorMessages:
    """Standard error messages for AnnotationError exceptions."""

    UNSUPPORTED_SITE = "{marker} is not supported on {site} call sites"
    UNSUPPORTED_TARGET = "{marker} must decorate a class or a function, got {target!r}"
    NOT_A_CLASS = "{marker} must decorate a class, got {target!r}"
