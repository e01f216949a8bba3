"""Errors raised by document generation.

Validation problems abort before any computation, render problems abort
without returning bytes, and distribution problems are reported but never
invalidate an already rendered document.
"""


class DocumentError(Exception):
    """Base class for every document generation error."""

    retryable = False

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(DocumentError):
    """Input record is missing required fields or carries invalid values."""


class RenderTimeout(DocumentError):
    """Rendering exceeded its time budget. Safe to retry."""

    retryable = True


class RenderFailure(DocumentError):
    """Rendering raised, or produced bytes without the PDF signature."""


class DistributionFailure(DocumentError):
    """Upload or email failed after a valid render."""
