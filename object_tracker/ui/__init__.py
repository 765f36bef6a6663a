#!/usr/bin/env python3
"""
On-screen pieces: preview layer, highlight rectangle and the HighGUI window.
"""

from .views import PreviewLayer, HighlightView
from .window import TrackerWindow

__all__ = [
    "PreviewLayer",
    "HighlightView",
    "TrackerWindow",
]
