"""
Error kinds raised across the generation and publishing pipeline
"""
from typing import List


class MasterEditorError(Exception):
    """Base class for every error raised by master_editor."""


class ValidationError(MasterEditorError):
    """A submitted request is missing required fields."""

    def __init__(self, missing_fields: List[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(f"Missing required fields: {', '.join(self.missing_fields)}")


class GenerationError(MasterEditorError):
    """The text or image provider failed or returned a malformed payload."""


class GenerationInProgressError(MasterEditorError):
    """A generation cycle is already running."""


class StatusTransitionError(MasterEditorError):
    """An AppStatus change outside the allowed transition table."""


class PersistenceError(MasterEditorError):
    """The storage medium could not be read or written."""


class ExportError(MasterEditorError):
    """An export artifact could not be produced."""
