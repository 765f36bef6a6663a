#!/usr/bin/env python3
"""
Core module for ObjectTracker.

Contains data models, protocols, configuration, events and errors.
"""

from .models import (
    NormalizedRect,
    PixelRect,
    Observation,
    Frame,
)

from .protocols import (
    FrameDelegate,
    FrameSource,
    TrackerBackend,
)

from .config import (
    CameraConfig,
    TrackerConfig,
    HighlightConfig,
    AppConfig,
)

from .events import (
    EventType,
    Event,
    EventBus,
    EventLogger,
)

from .exceptions import (
    ObjectTrackerError,
    CameraError,
    TrackingError,
)

__all__ = [
    # Models
    "NormalizedRect",
    "PixelRect",
    "Observation",
    "Frame",
    # Protocols
    "FrameDelegate",
    "FrameSource",
    "TrackerBackend",
    # Config
    "CameraConfig",
    "TrackerConfig",
    "HighlightConfig",
    "AppConfig",
    # Events
    "EventType",
    "Event",
    "EventBus",
    "EventLogger",
    # Errors
    "ObjectTrackerError",
    "CameraError",
    "TrackingError",
]
