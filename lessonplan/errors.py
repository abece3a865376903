"""
Error Types

Exceptions raised by the plan engines and the import pipeline.
"""


class PlanError(Exception):
    """Base class for all teaching plan errors."""


class InvalidPathError(PlanError, LookupError):
    """
    A path does not resolve to a scalar leaf of the plan schema.

    Paths are written by the same code that defines the schema, so this
    signals a defect in the caller rather than bad user input.
    """

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid plan path {path!r}: {reason}")


class CorruptDocumentError(PlanError):
    """Stored bytes could not be decoded into a plan."""


class ExtractionError(PlanError):
    """The extraction service failed or did not return JSON."""


class UnsupportedSourceError(PlanError):
    """An uploaded file cannot be sent to the extraction service."""


class ImportInProgressError(PlanError):
    """An import was requested while another one is still running."""
