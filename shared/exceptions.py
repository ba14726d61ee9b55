"""
Exception types for the Room Visualizer service.

Upload problems map to 400, provider failures abort the pipeline with a 500,
and persistence failures are logged without touching the generation result.
"""

from typing import Any


class RoomVisualizerError(Exception):
    """Base class for service errors."""


class UploadValidationError(RoomVisualizerError):
    """The uploaded image is missing, not an image, or too large."""


class ProviderError(RoomVisualizerError):
    """An upstream AI provider call failed or returned an unexpected shape."""

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: int | None = None,
        payload: Any = None,
    ):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.status_code = status_code
        self.payload = payload


class PipelineStageError(RoomVisualizerError):
    """A pipeline stage failed; the pipeline was aborted."""

    def __init__(self, stage: str, cause: Exception):
        super().__init__(f"{stage} stage failed: {cause}")
        self.stage = stage
        self.cause = cause

    @property
    def upstream_payload(self) -> Any:
        return getattr(self.cause, "payload", None)


class PersistenceError(RoomVisualizerError):
    """The history store could not be read or written."""


class HistoryUnavailableError(RoomVisualizerError):
    """History was requested but no database is configured."""
