#!/usr/bin/env python3
"""
Core data models for the tracking loop.

Rects and observations are immutable (frozen dataclasses) so they can be
handed between the camera thread and the UI thread without copying.
"""

from __future__ import annotations
import time
import uuid
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np


# =============================================================================
# NORMALIZED RECTS
# =============================================================================

@dataclass(frozen=True)
class NormalizedRect:
    """
    Rect in 0-1 image space.

    The same type is used for the top-left origin "metadata output" space and
    the bottom-left origin "vision" space; which one is meant is up to the
    caller.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def mid_x(self) -> float:
        return self.x + self.width / 2.0

    @property
    def mid_y(self) -> float:
        return self.y + self.height / 2.0

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def flipped_vertically(self) -> NormalizedRect:
        """Mirror across the horizontal center line (switches origin corner)."""
        return NormalizedRect(self.x, 1.0 - self.y - self.height, self.width, self.height)

    def clamped(self) -> NormalizedRect:
        """Intersect with the unit square."""
        x1 = min(max(self.min_x, 0.0), 1.0)
        y1 = min(max(self.min_y, 0.0), 1.0)
        x2 = min(max(self.max_x, 0.0), 1.0)
        y2 = min(max(self.max_y, 0.0), 1.0)
        return NormalizedRect(x1, y1, x2 - x1, y2 - y1)

    def to_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)


NormalizedRect.ZERO = NormalizedRect(0.0, 0.0, 0.0, 0.0)


# =============================================================================
# PIXEL RECTS
# =============================================================================

@dataclass(frozen=True)
class PixelRect:
    """Rect in view/layer pixels, top-left origin."""
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def with_size(self, width: float, height: float) -> PixelRect:
        """Resize keeping the origin."""
        return PixelRect(self.x, self.y, width, height)

    def with_center(self, cx: float, cy: float) -> PixelRect:
        """Move so that the rect is centered on (cx, cy)."""
        return PixelRect(cx - self.width / 2.0, cy - self.height / 2.0, self.width, self.height)

    def to_int_corners(self) -> Tuple[Tuple[int, int], Tuple[int, int]]:
        """Return ((x1, y1), (x2, y2)) rounded for cv2 drawing."""
        return (
            (int(round(self.x)), int(round(self.y))),
            (int(round(self.x + self.width)), int(round(self.y + self.height))),
        )

    def to_xywh(self) -> Tuple[int, int, int, int]:
        """Return as integer (x, y, width, height), the cv2 tracker box format."""
        return (int(round(self.x)), int(round(self.y)),
                int(round(self.width)), int(round(self.height)))

    @classmethod
    def from_xywh(cls, box) -> PixelRect:
        x, y, w, h = box
        return cls(float(x), float(y), float(w), float(h))


PixelRect.ZERO = PixelRect(0.0, 0.0, 0.0, 0.0)


# =============================================================================
# OBSERVATIONS
# =============================================================================

@dataclass(frozen=True)
class Observation:
    """
    A tracked region: vision-space bounding box plus confidence.

    Seed observations built from a tap carry confidence 1.0.
    """
    bounding_box: NormalizedRect
    confidence: float = 1.0
    uuid: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be 0-1, got {self.confidence}")

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        return {
            "uuid": self.uuid,
            "bounding_box": self.bounding_box.to_tuple(),
            "confidence": self.confidence,
            "timestamp": self.timestamp,
        }


# =============================================================================
# FRAMES
# =============================================================================

@dataclass
class Frame:
    """A captured BGR image with capture metadata."""
    image: np.ndarray
    timestamp: float
    number: int = 0

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height) of the image."""
        return (self.width, self.height)
