#!/usr/bin/env python3
"""
Tracker Window
==============
Single HighGUI screen: live camera, tap (left click) to pick a target,
'r' to reset, 'q' or Esc to quit.
"""

import logging
import time

import cv2
import numpy as np

from ..core.config import AppConfig

logger = logging.getLogger(__name__)

STATUS_COLOR = (200, 200, 200)


class TrackerWindow:
    """Runs the UI loop for a TrackingController on the calling (main) thread."""

    def __init__(self, controller, config: AppConfig = None):
        self.controller = controller
        self.config = config or controller.config
        self.name = self.config.window_name
        self._fps = 0
        self._fps_count = 0
        self._fps_time = time.time()
        self._last_frame_number = -1

    def _on_mouse(self, event, x, y, flags, param):
        if event == cv2.EVENT_LBUTTONDOWN:
            self.controller.user_tapped(x, y)

    def handle_key(self, key: int) -> bool:
        """Apply a key press. Returns False when the loop should stop."""
        if key in (ord('q'), 27):  # q / ESC
            return False
        if key == ord('r'):
            self.controller.reset_tapped()
        return True

    def compose(self) -> np.ndarray:
        """Build the image for the current tick: preview, highlight, status."""
        w, h = self.config.view_size
        frame = self.controller.session.latest_frame()
        if frame is None:
            canvas = np.zeros((h, w, 3), dtype=np.uint8)
            message = "Waiting for camera..." if self.controller.session.is_running else "No camera"
            cv2.putText(canvas, message, (20, h // 2),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.8, STATUS_COLOR, 2)
        else:
            canvas = self.controller.camera_layer.render(frame.image)
            self._count_frame(frame.number)

        self.controller.highlight_view.draw(canvas)

        if self.config.show_status:
            self._draw_status(canvas)
        return canvas

    def _count_frame(self, number: int) -> None:
        if number == self._last_frame_number:
            return
        self._last_frame_number = number
        self._fps_count += 1
        now = time.time()
        if now - self._fps_time >= 1.0:
            self._fps = self._fps_count
            self._fps_count = 0
            self._fps_time = now

    def _draw_status(self, canvas: np.ndarray) -> None:
        h = canvas.shape[0]
        observation = self.controller.last_observation
        if observation is None:
            status = f"FPS: {self._fps} | no target"
        else:
            status = f"FPS: {self._fps} | confidence: {observation.confidence:.2f}"
        cv2.putText(canvas, status, (10, 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, STATUS_COLOR, 1)
        cv2.putText(canvas, "Click to track  |  'r' reset  |  'q' quit", (10, h - 20),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, STATUS_COLOR, 1)

    def run(self, max_frames: int = 0) -> None:
        """
        Main loop.

        Args:
            max_frames: Stop after N camera frames (0 = unlimited)
        """
        cv2.namedWindow(self.name, cv2.WINDOW_AUTOSIZE)
        cv2.setMouseCallback(self.name, self._on_mouse)

        self.controller.view_did_layout_subviews(self.config.view_size)
        if not self.controller.view_did_load():
            logger.warning("Camera unavailable; showing an empty preview")

        try:
            while True:
                self.controller.main_queue.drain()
                cv2.imshow(self.name, self.compose())

                key = cv2.waitKey(15) & 0xFF
                if not self.handle_key(key):
                    break

                if max_frames > 0 and self._last_frame_number >= max_frames:
                    logger.info(f"Reached {max_frames} frames, stopping")
                    break
        finally:
            self.controller.session.release()
            cv2.destroyAllWindows()
