# backend/app/core/errors.py


class ScreeningError(Exception):
    """Base class for every failure raised by the screening pipeline."""


class ExtractionError(ScreeningError):
    """The uploaded bytes could not be parsed as a PDF document."""


class ClassificationIndeterminate(ScreeningError):
    """Raised inside the classifier only; always resolved to a verdict."""


class OracleError(ScreeningError):
    """Transport, status, or reply-validation failure from the scoring service."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class BatchRejected(ScreeningError):
    """The batch cannot start (missing inputs, too many files)."""
