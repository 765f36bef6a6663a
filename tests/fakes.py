"""Test doubles shared by the test modules."""

import cv2
import numpy as np

from object_tracker.core.models import Frame


class FakeSession:
    """FrameSource that never starts a thread; tests push frames by hand."""

    def __init__(self, start_ok: bool = True):
        self.delegate = None
        self.start_ok = start_ok
        self.started = False
        self.released = False
        self.frame = None

    def add_output(self, delegate):
        self.delegate = delegate

    def start_running(self) -> bool:
        self.started = self.start_ok
        return self.start_ok

    def stop_running(self):
        self.started = False
        return True

    @property
    def is_running(self) -> bool:
        return self.started

    def latest_frame(self):
        return self.frame

    def release(self):
        self.released = True
        self.started = False

    def push(self, frame):
        self.frame = frame
        self.delegate.capture_output(frame)


class FakeBackend:
    """TrackerBackend returning scripted update() results."""

    def __init__(self, updates=None):
        self.updates = list(updates or [])
        self.init_calls = []
        self.update_calls = 0

    def init(self, image, box):
        self.init_calls.append(tuple(box))

    def update(self, image):
        self.update_calls += 1
        if self.updates:
            return self.updates.pop(0)
        return False, (0.0, 0.0, 0.0, 0.0)


def textured_image(width: int = 200, height: int = 100, seed: int = 7) -> np.ndarray:
    """Random BGR noise; every patch is distinct enough for NCC."""
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


def make_frame(image=None, number: int = 1) -> Frame:
    if image is None:
        image = textured_image()
    return Frame(image=image, timestamp=float(number), number=number)


def gray_patch(width: int, height: int, seed: int = 7) -> np.ndarray:
    return np.ascontiguousarray(textured_image(width, height, seed)[:, :, 0])


def smooth_image(width: int = 400, height: int = 200, seed: int = 7) -> np.ndarray:
    """Blurred noise: neighbouring patches look alike, distant ones do not."""
    return cv2.GaussianBlur(textured_image(width, height, seed), (0, 0), 8)
