#!/usr/bin/env python3
"""
Object tracking module for ObjectTracker.

Provides sequence tracking of a single observation and the controller that
binds it to the camera and the highlight.
"""

from .sequence import (
    OpenCVTrackerBackend,
    SequenceRequestHandler,
    TrackObjectRequest,
    create_backend,
)
from .controller import TrackingController

__all__ = [
    "OpenCVTrackerBackend",
    "SequenceRequestHandler",
    "TrackObjectRequest",
    "create_backend",
    "TrackingController",
]
