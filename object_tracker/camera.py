"""Camera session: captures frames on a background thread and hands them to a delegate."""

import logging
import threading
import time
from typing import Optional

import cv2

from .core.config import CameraConfig
from .core.events import EventBus, EventType
from .core.exceptions import CameraError
from .core.models import Frame
from .core.protocols import FrameDelegate

logger = logging.getLogger(__name__)


class CameraSession:
    """
    Wraps cv2.VideoCapture and runs the capture loop on a daemon thread.

    Frames are delivered to the registered delegate on that thread; the
    delegate is responsible for marshaling UI work elsewhere.
    """

    def __init__(self, config: Optional[CameraConfig] = None, event_bus: Optional[EventBus] = None):
        self.config = config or CameraConfig()
        self.event_bus = event_bus
        self.cap = None
        self._delegate: Optional[FrameDelegate] = None
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._latest: Optional[Frame] = None
        self._frame_number = 0

    def open(self):
        """Open the capture device. Raises CameraError if it is unavailable."""
        source = self.config.source
        self.cap = cv2.VideoCapture(source)
        if not self.cap.isOpened():
            self.cap.release()
            self.cap = None
            raise CameraError(f"Could not open camera {source}", source=source)

        if self.config.video_path is None:
            if self.config.width:
                self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.width)
            if self.config.height:
                self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.height)
            if self.config.fps:
                self.cap.set(cv2.CAP_PROP_FPS, self.config.fps)
        return self

    def add_output(self, delegate: FrameDelegate) -> None:
        self._delegate = delegate

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start_running(self) -> bool:
        """
        Start the capture thread.

        Returns:
            False if the camera could not be opened (logged, session stays idle)
        """
        if self.is_running:
            return True
        if self.cap is None:
            try:
                self.open()
            except CameraError as e:
                logger.error(f"Error loading camera: {e}")
                self._emit(EventType.CAMERA_ERROR, error=str(e))
                return False

        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="VideoQueue", daemon=True)
        self._thread.start()
        self._emit(EventType.SESSION_STARTED, source_id=str(self.config.source))
        return True

    def stop_running(self, timeout: float = 2.0) -> bool:
        """
        Ask the capture thread to stop and wait for it.

        Returns:
            False if the thread is still running after timeout
        """
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(f"Capture thread did not stop within {timeout:.1f}s")
                return False
        self._thread = None
        return True

    def latest_frame(self) -> Optional[Frame]:
        with self._lock:
            return self._latest

    def read_frame(self) -> Optional[Frame]:
        """Grab one frame synchronously. None on read failure."""
        if self.cap is None:
            self.open()
        ok, image = self.cap.read()
        if not ok or image is None:
            return None
        if self.config.mirror:
            image = cv2.flip(image, 1)
        self._frame_number += 1
        return Frame(image=image, timestamp=time.time(), number=self._frame_number)

    def _run(self) -> None:
        failures = 0
        frame_interval = 0.0
        if self.config.video_path is not None:
            # Files decode faster than real time; pace them like a camera
            fps = self.cap.get(cv2.CAP_PROP_FPS) or self.config.fps
            frame_interval = 1.0 / fps if fps else 0.0

        while not self._stop.is_set():
            started = time.time()
            frame = self.read_frame()
            if frame is None:
                failures += 1
                if failures >= self.config.max_read_failures:
                    logger.error(f"Camera read failed {failures} times in a row, stopping")
                    self._emit(EventType.CAMERA_ERROR, error="read failed", failures=failures)
                    break
                continue
            failures = 0

            with self._lock:
                self._latest = frame

            if self._delegate is not None:
                try:
                    self._delegate.capture_output(frame)
                except Exception as e:
                    logger.error(f"Frame delegate error on frame {frame.number}: {e}")

            if frame_interval:
                remaining = frame_interval - (time.time() - started)
                if remaining > 0:
                    self._stop.wait(remaining)

        self._emit(EventType.SESSION_STOPPED, frames=self._frame_number)

    def _emit(self, event_type: EventType, **data) -> None:
        if self.event_bus is not None:
            self.event_bus.emit_simple(event_type, source="camera", **data)

    def release(self, timeout: float = 2.0):
        # Never release the capture under a thread that may be inside cap.read()
        if not self.stop_running(timeout):
            return
        if self.cap:
            self.cap.release()
            self.cap = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.release()
