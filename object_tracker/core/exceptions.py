"""Custom exception classes for ObjectTracker."""

from __future__ import annotations

from typing import Optional


class ObjectTrackerError(Exception):
    """Base exception for all ObjectTracker errors."""

    pass


class CameraError(ObjectTrackerError):
    """Raised when the camera cannot be opened or read."""

    def __init__(self, message: str, source: Optional[object] = None):
        self.source = source
        super().__init__(message)


class TrackingError(ObjectTrackerError):
    """Raised when a tracking request cannot be performed on a frame."""

    pass
