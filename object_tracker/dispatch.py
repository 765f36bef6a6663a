#!/usr/bin/env python3
"""
Main-thread dispatch queue.

HighGUI windows must only be touched from the thread that created them, so
anything the capture thread wants to change on screen is enqueued here and
run when the UI loop drains the queue.
"""

import logging
import queue
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class MainQueue:
    """FIFO of callables executed on the main (UI) thread."""

    def __init__(self, main_thread: Optional[threading.Thread] = None):
        self._queue: "queue.Queue[tuple]" = queue.Queue()
        self._main_thread = main_thread or threading.current_thread()

    def async_(self, fn: Callable, *args, **kwargs) -> None:
        """Schedule fn(*args, **kwargs) on the main thread. Safe from any thread."""
        self._queue.put((fn, args, kwargs))

    def is_main_thread(self) -> bool:
        return threading.current_thread() is self._main_thread

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def drain(self, max_items: int = 0) -> int:
        """
        Run queued callables on the calling thread.

        Args:
            max_items: Stop after this many (0 = until empty)

        Returns:
            Number of callables run
        """
        count = 0
        while max_items <= 0 or count < max_items:
            try:
                fn, args, kwargs = self._queue.get_nowait()
            except queue.Empty:
                break
            count += 1
            try:
                fn(*args, **kwargs)
            except Exception as e:
                logger.error(f"Dispatched call {getattr(fn, '__name__', fn)} failed: {e}")
        return count
