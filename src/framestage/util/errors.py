from __future__ import annotations

class FrameStageError(Exception):
    """Base exception for the application."""

class UserCancelledError(FrameStageError):
    """Raised when the operator cancels an in-progress run.

    Carries the partial report for whatever finished before the cancel.
    """

    def __init__(self, message: str = "Cancelled by user.", report: object | None = None) -> None:
        super().__init__(message)
        self.report = report

class ExifToolError(FrameStageError):
    """Raised when ExifTool cannot be invoked at all."""

class ExifToolMissingError(ExifToolError):
    """Raised at startup when no ExifTool executable can be found."""

class ImageDecodeError(FrameStageError):
    """Raised when an image cannot be decoded or re-encoded."""
