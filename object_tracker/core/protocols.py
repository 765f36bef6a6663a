#!/usr/bin/env python3
"""
Protocol definitions for swappable components.

Using Python's Protocol for structural subtyping, so the camera and the
tracker backend can be replaced (e.g. by fakes in tests) without inheritance.
"""

from typing import Protocol, runtime_checkable, Optional, Tuple
import numpy as np

from .models import Frame


@runtime_checkable
class FrameDelegate(Protocol):
    """Receives frames from a camera session, on the capture thread."""

    def capture_output(self, frame: Frame) -> None:
        ...


@runtime_checkable
class FrameSource(Protocol):
    """Interface for a running source of frames."""

    def add_output(self, delegate: FrameDelegate) -> None:
        ...

    def start_running(self) -> bool:
        ...

    def stop_running(self) -> bool:
        ...

    @property
    def is_running(self) -> bool:
        ...

    def latest_frame(self) -> Optional[Frame]:
        ...


@runtime_checkable
class TrackerBackend(Protocol):
    """Interface for a single-object tracker (cv2.Tracker shaped)."""

    def init(self, image: np.ndarray, box: Tuple[int, int, int, int]) -> None:
        """
        Start tracking box in image.

        Args:
            image: BGR image
            box: (x, y, width, height) in image pixels
        """
        ...

    def update(self, image: np.ndarray) -> Tuple[bool, Tuple[float, float, float, float]]:
        """
        Locate the target in a new image.

        Returns:
            (found, (x, y, width, height))
        """
        ...
