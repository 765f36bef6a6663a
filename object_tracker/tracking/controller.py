#!/usr/bin/env python3
"""
Tracking controller: glue between the camera, the tracker and the screen.

Holds the single "last observation":
- created when the user taps
- replaced by every tracking result
- cleared on reset

Frames arrive on the camera thread; results are marshaled onto the main
queue before the highlight is touched.
"""

import logging
import threading
from typing import Optional, Tuple

from ..core.config import AppConfig
from ..core.events import EventBus, EventType
from ..core.exceptions import TrackingError
from ..core.models import Frame, Observation, PixelRect
from ..core.protocols import FrameSource
from ..dispatch import MainQueue
from ..geometry import metadata_rect_from_vision_rect, vision_rect_from_metadata_rect
from ..ui.views import HighlightView, PreviewLayer
from .sequence import SequenceRequestHandler, TrackObjectRequest

logger = logging.getLogger(__name__)


class TrackingController:
    """Owns the tap-to-track state for one screen."""

    def __init__(
        self,
        session: FrameSource,
        config: Optional[AppConfig] = None,
        main_queue: Optional[MainQueue] = None,
        event_bus: Optional[EventBus] = None,
        sequence_handler: Optional[SequenceRequestHandler] = None
    ):
        self.session = session
        self.config = config or AppConfig()
        self.main_queue = main_queue or MainQueue()
        self.event_bus = event_bus or EventBus()
        self.sequence_handler = sequence_handler or SequenceRequestHandler(
            algorithm=self.config.tracker.algorithm
        )

        self.camera_layer = PreviewLayer(
            self.config.view_size, gravity=self.config.highlight.video_gravity
        )
        self.highlight_view = HighlightView(
            border_color=self.config.highlight.border_color,
            border_width=self.config.highlight.border_width,
        )

        self._lock = threading.Lock()
        self._last_observation: Optional[Observation] = None
        self._image_size: Optional[Tuple[int, int]] = None
        # main thread only
        self._failed_uuid: Optional[str] = None

    @property
    def last_observation(self) -> Optional[Observation]:
        with self._lock:
            return self._last_observation

    # -------------------------------------------------------------------------
    # View lifecycle
    # -------------------------------------------------------------------------

    def view_did_load(self) -> bool:
        """Hide the highlight, register for frames and start the camera."""
        self.highlight_view.frame = PixelRect.ZERO
        self.session.add_output(self)
        return self.session.start_running()

    def view_did_layout_subviews(self, size: Tuple[int, int]) -> None:
        self.camera_layer.frame_size = size

    # -------------------------------------------------------------------------
    # Camera thread
    # -------------------------------------------------------------------------

    def capture_output(self, frame: Frame) -> None:
        """Called by the camera session for every frame, off the main thread."""
        with self._lock:
            size_changed = frame.size != self._image_size
            self._image_size = frame.size
            previous = self._last_observation

        if size_changed:
            self.main_queue.async_(self._image_size_changed, frame.size)
        if previous is None:
            return

        request = TrackObjectRequest(previous, self._request_completed)
        try:
            self.sequence_handler.perform([request], frame)
        except TrackingError as e:
            logger.warning(f"Tracking request failed on frame {frame.number}: {e}")
            self._emit(EventType.TRACKER_ERROR, error=str(e), frame=frame.number)

    def _request_completed(self, request: TrackObjectRequest, error: Optional[Exception]) -> None:
        self.main_queue.async_(self.handle_vision_request_update, request, error)

    # -------------------------------------------------------------------------
    # Main thread
    # -------------------------------------------------------------------------

    def _image_size_changed(self, size: Tuple[int, int]) -> None:
        self.camera_layer.image_size = size

    def handle_vision_request_update(
        self,
        request: TrackObjectRequest,
        error: Optional[Exception]
    ) -> None:
        """Store the tracking result and move the highlight if it is confident."""
        if not request.results:
            failed_uuid = request.input_observation.uuid
            if failed_uuid == self._failed_uuid:
                logger.debug(f"Tracking still failing: {error}")
                return
            self._failed_uuid = failed_uuid
            logger.error(f"Tracking returned no observation: {error}")
            self._emit(EventType.TRACKER_ERROR, error=str(error))
            return

        new_observation = request.results[0]

        with self._lock:
            current = self._last_observation
            # Reset or a new tap happened while this request was in flight
            if current is None or current.uuid != new_observation.uuid:
                return
            self._last_observation = new_observation
        self._failed_uuid = None

        if new_observation.confidence < self.config.tracker.confidence_threshold:
            self._emit(EventType.TRACK_LOW_CONFIDENCE, confidence=new_observation.confidence)
            return

        transformed = metadata_rect_from_vision_rect(new_observation.bounding_box)
        self.highlight_view.frame = self.camera_layer.layer_rect_converted(transformed)
        self._emit(
            EventType.TRACK_UPDATED,
            confidence=new_observation.confidence,
            box=new_observation.bounding_box.to_tuple(),
        )

    def user_tapped(self, x: float, y: float) -> Observation:
        """Seed a new target: a seed_size square centered on the tap."""
        side = self.config.tracker.seed_size
        self.highlight_view.frame = PixelRect.ZERO.with_size(side, side).with_center(x, y)

        converted = self.camera_layer.metadata_output_rect_converted(self.highlight_view.frame)
        new_observation = Observation(bounding_box=vision_rect_from_metadata_rect(converted))

        with self._lock:
            self._last_observation = new_observation

        logger.info(f"Tracking target seeded at ({x:.0f}, {y:.0f})")
        self._emit(EventType.TARGET_SEEDED, point=(x, y), box=new_observation.bounding_box.to_tuple())
        return new_observation

    def reset_tapped(self) -> None:
        with self._lock:
            self._last_observation = None
        self.highlight_view.frame = PixelRect.ZERO
        logger.info("Tracking target cleared")
        self._emit(EventType.TARGET_RESET)

    def _emit(self, event_type: EventType, **data) -> None:
        self.event_bus.emit_simple(event_type, source="controller", **data)
