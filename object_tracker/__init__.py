"""Tap-to-track: follow a user-picked region of a live camera feed."""

__version__ = "0.2.0"
