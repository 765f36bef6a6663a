#!/usr/bin/env python3
"""
Sequence tracking: follow one observation across consecutive frames.

A TrackObjectRequest carries the observation to follow; the
SequenceRequestHandler keeps an OpenCV tracker alive between frames so each
request continues where the previous one left off. Results keep the uuid of
the observation they were seeded from, so a new seed (new uuid) restarts the
backend.

Confidence is the normalized cross-correlation between the patch cut out at
seed time and the patch under the new box, clipped to [0, 1]. The seed patch
is never refreshed, so a box that slowly drifts off the target loses
confidence.
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from ..core.exceptions import TrackingError
from ..core.models import Frame, Observation, PixelRect
from ..core.protocols import TrackerBackend
from ..geometry import (
    metadata_rect_from_vision_rect,
    vision_rect_from_metadata_rect,
    pixel_rect_from_normalized,
    normalized_rect_from_pixel,
)

logger = logging.getLogger(__name__)

# name -> cv2 factory attribute (CSRT and KCF ship in opencv-contrib)
_OPENCV_TRACKERS = {
    "csrt": "TrackerCSRT_create",
    "kcf": "TrackerKCF_create",
    "mil": "TrackerMIL_create",
}

MIN_BOX_SIDE = 4  # pixels; smaller seeds give trackers nothing to latch onto


# =============================================================================
# BACKENDS
# =============================================================================

class OpenCVTrackerBackend:
    """cv2.Tracker wrapper selected by name."""

    def __init__(self, algorithm: str = "csrt"):
        if algorithm not in _OPENCV_TRACKERS:
            raise ValueError(f"Unknown tracker algorithm: {algorithm!r}")
        factory = getattr(cv2, _OPENCV_TRACKERS[algorithm], None)
        if factory is None:
            raise ValueError(
                f"OpenCV build has no {algorithm.upper()} tracker (install opencv-contrib-python)"
            )
        self.algorithm = algorithm
        self._tracker = factory()

    def init(self, image: np.ndarray, box: Tuple[int, int, int, int]) -> None:
        self._tracker.init(image, tuple(int(v) for v in box))

    def update(self, image: np.ndarray):
        ok, box = self._tracker.update(image)
        return bool(ok), tuple(float(v) for v in box)


def create_backend(algorithm: str = "csrt") -> TrackerBackend:
    return OpenCVTrackerBackend(algorithm)


# =============================================================================
# CONFIDENCE
# =============================================================================

def _gray(image: np.ndarray) -> np.ndarray:
    if image.ndim == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return image


def crop(image: np.ndarray, rect: PixelRect) -> np.ndarray:
    """Crop rect out of image, clipped to the image bounds (may be empty)."""
    h, w = image.shape[:2]
    (x1, y1), (x2, y2) = rect.to_int_corners()
    x1, y1 = max(0, x1), max(0, y1)
    x2, y2 = min(w, x2), min(h, y2)
    if x2 <= x1 or y2 <= y1:
        return image[0:0, 0:0]
    return image[y1:y2, x1:x2]


def patch_similarity(template: Optional[np.ndarray], patch: np.ndarray) -> float:
    """TM_CCOEFF_NORMED score between two grayscale patches, clipped to [0, 1]."""
    if template is None or template.size == 0 or patch.size == 0:
        return 0.0
    if patch.shape != template.shape:
        patch = cv2.resize(patch, (template.shape[1], template.shape[0]))
    score = cv2.matchTemplate(patch, template, cv2.TM_CCOEFF_NORMED)[0, 0]
    if not np.isfinite(score):
        return 0.0
    return float(np.clip(score, 0.0, 1.0))


# =============================================================================
# REQUEST
# =============================================================================

CompletionHandler = Callable[["TrackObjectRequest", Optional[Exception]], None]


class TrackObjectRequest:
    """Ask the handler where the given observation moved to in the next frame."""

    def __init__(
        self,
        detected_object_observation: Observation,
        completion_handler: Optional[CompletionHandler] = None
    ):
        self.input_observation = detected_object_observation
        self.completion_handler = completion_handler
        self.results: Optional[List[Observation]] = None
        self.error: Optional[Exception] = None

    def complete(self) -> None:
        if self.completion_handler is not None:
            self.completion_handler(self, self.error)


# =============================================================================
# HANDLER
# =============================================================================

class SequenceRequestHandler:
    """
    Performs tracking requests over a sequence of frames.

    Not thread-safe: perform from one thread (the capture thread).
    """

    def __init__(
        self,
        algorithm: str = "csrt",
        backend_factory: Optional[Callable[[], TrackerBackend]] = None
    ):
        self.algorithm = algorithm
        self._backend_factory = backend_factory or (lambda: create_backend(algorithm))
        self._backend: Optional[TrackerBackend] = None
        self._tracking_uuid: Optional[str] = None
        self._seed_patch: Optional[np.ndarray] = None

    @property
    def tracking_uuid(self) -> Optional[str]:
        """uuid of the observation the backend is currently following."""
        return self._tracking_uuid

    def perform(self, requests: Sequence[TrackObjectRequest], frame) -> None:
        """
        Run each request against frame and call its completion handler.

        Raises:
            TrackingError: frame is not a usable BGR image
        """
        image = frame.image if isinstance(frame, Frame) else frame
        if not isinstance(image, np.ndarray) or image.size == 0:
            raise TrackingError("Frame is empty")
        if image.ndim != 3 or image.shape[2] != 3:
            raise TrackingError(f"Expected a BGR image, got shape {image.shape}")

        for request in requests:
            try:
                request.results = [self._track(request.input_observation, image)]
            except TrackingError as e:
                request.results = []
                request.error = e
            request.complete()

    def reset(self) -> None:
        """Forget the current target."""
        self._backend = None
        self._tracking_uuid = None
        self._seed_patch = None

    def _track(self, observation: Observation, image: np.ndarray) -> Observation:
        h, w = image.shape[:2]

        if self._backend is None or observation.uuid != self._tracking_uuid:
            pixel = pixel_rect_from_normalized(
                metadata_rect_from_vision_rect(observation.bounding_box).clamped(), (w, h)
            )
            return self._seed(observation, image, pixel)

        try:
            found, box = self._backend.update(image)
        except cv2.error as e:
            raise TrackingError(f"Tracker update failed: {e}") from e

        if not found:
            # Keep reporting the last known box so the caller can decide
            return Observation(
                bounding_box=observation.bounding_box,
                confidence=0.0,
                uuid=observation.uuid,
            )

        tracked = PixelRect.from_xywh(box)
        patch = _gray(crop(image, tracked))
        confidence = patch_similarity(self._seed_patch, patch)

        normalized = normalized_rect_from_pixel(tracked, (w, h)).clamped()
        return Observation(
            bounding_box=vision_rect_from_metadata_rect(normalized),
            confidence=confidence,
            uuid=observation.uuid,
        )

    def _seed(self, observation: Observation, image: np.ndarray, pixel: PixelRect) -> Observation:
        if pixel.width < MIN_BOX_SIDE or pixel.height < MIN_BOX_SIDE:
            self.reset()
            raise TrackingError(f"Seed box {pixel.to_xywh()} is outside the frame or too small")

        backend = self._backend_factory()
        try:
            backend.init(image, pixel.to_xywh())
        except cv2.error as e:
            self.reset()
            raise TrackingError(f"Tracker init failed: {e}") from e

        logger.debug(f"Seeded {self.algorithm} tracker on {pixel.to_xywh()}")
        self._backend = backend
        self._tracking_uuid = observation.uuid
        self._seed_patch = _gray(crop(image, pixel))

        normalized = normalized_rect_from_pixel(pixel, (image.shape[1], image.shape[0]))
        return Observation(
            bounding_box=vision_rect_from_metadata_rect(normalized),
            confidence=1.0,
            uuid=observation.uuid,
        )
