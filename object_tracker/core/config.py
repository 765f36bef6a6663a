#!/usr/bin/env python3
"""
Application configuration with validation.

All configs are frozen dataclasses for immutability.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, Tuple


TRACKER_ALGORITHMS = ("csrt", "kcf", "mil")
VIDEO_GRAVITIES = ("resize_aspect_fill", "resize_aspect", "resize")


# =============================================================================
# COMPONENT CONFIGS
# =============================================================================

@dataclass(frozen=True)
class CameraConfig:
    """Camera session configuration."""
    device: int = 0                 # cv2.VideoCapture index
    video_path: Optional[str] = None  # Play a file instead of a device
    width: int = 1280               # Requested capture width (0 = driver default)
    height: int = 720               # Requested capture height (0 = driver default)
    fps: int = 30                   # Requested capture rate (0 = driver default)
    mirror: bool = False            # Flip frames horizontally
    max_read_failures: int = 30     # Consecutive failed reads before stopping

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ValueError(f"capture size must be >= 0, got {self.width}x{self.height}")
        if self.fps < 0:
            raise ValueError(f"fps must be >= 0, got {self.fps}")
        if self.max_read_failures < 1:
            raise ValueError(f"max_read_failures must be >= 1, got {self.max_read_failures}")

    @property
    def source(self):
        """What to hand to cv2.VideoCapture."""
        return self.video_path if self.video_path else self.device


@dataclass(frozen=True)
class TrackerConfig:
    """Object tracking configuration."""
    algorithm: str = "csrt"           # csrt, kcf or mil
    confidence_threshold: float = 0.9  # Below this the highlight is not moved
    seed_size: int = 120              # Tap box side in view pixels

    def __post_init__(self):
        if self.algorithm not in TRACKER_ALGORITHMS:
            raise ValueError(f"algorithm must be one of {TRACKER_ALGORITHMS}, got {self.algorithm!r}")
        if not 0 <= self.confidence_threshold <= 1:
            raise ValueError(f"confidence_threshold must be 0-1, got {self.confidence_threshold}")
        if self.seed_size < 1:
            raise ValueError(f"seed_size must be >= 1, got {self.seed_size}")


@dataclass(frozen=True)
class HighlightConfig:
    """Highlight rectangle and preview appearance."""
    border_color: Tuple[int, int, int] = (0, 0, 255)  # BGR red
    border_width: int = 4
    video_gravity: str = "resize_aspect_fill"

    def __post_init__(self):
        if len(self.border_color) != 3 or not all(0 <= c <= 255 for c in self.border_color):
            raise ValueError(f"border_color must be a BGR triple, got {self.border_color}")
        if self.border_width < 1:
            raise ValueError(f"border_width must be >= 1, got {self.border_width}")
        if self.video_gravity not in VIDEO_GRAVITIES:
            raise ValueError(f"video_gravity must be one of {VIDEO_GRAVITIES}, got {self.video_gravity!r}")


# =============================================================================
# APP CONFIG
# =============================================================================

@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration."""
    camera: CameraConfig = field(default_factory=CameraConfig)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    highlight: HighlightConfig = field(default_factory=HighlightConfig)

    # Window
    window_name: str = "ObjectTracker"
    view_width: int = 960
    view_height: int = 540
    show_status: bool = True

    def __post_init__(self):
        if self.view_width < 1 or self.view_height < 1:
            raise ValueError(f"view size must be positive, got {self.view_width}x{self.view_height}")

    @property
    def view_size(self) -> Tuple[int, int]:
        return (self.view_width, self.view_height)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        """Create config from dictionary (e.g., YAML file)."""
        highlight = dict(data.get("highlight", {}))
        if "border_color" in highlight:
            highlight["border_color"] = tuple(highlight["border_color"])
        return cls(
            camera=CameraConfig(**data.get("camera", {})),
            tracker=TrackerConfig(**data.get("tracker", {})),
            highlight=HighlightConfig(**highlight),
            window_name=data.get("window_name", "ObjectTracker"),
            view_width=data.get("view_width", 960),
            view_height=data.get("view_height", 540),
            show_status=data.get("show_status", True),
        )

    @classmethod
    def from_yaml(cls, path: str) -> "AppConfig":
        """Load config from YAML file."""
        import yaml
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "camera": {
                "device": self.camera.device,
                "video_path": self.camera.video_path,
                "width": self.camera.width,
                "height": self.camera.height,
                "fps": self.camera.fps,
                "mirror": self.camera.mirror,
                "max_read_failures": self.camera.max_read_failures,
            },
            "tracker": {
                "algorithm": self.tracker.algorithm,
                "confidence_threshold": self.tracker.confidence_threshold,
                "seed_size": self.tracker.seed_size,
            },
            "highlight": {
                "border_color": list(self.highlight.border_color),
                "border_width": self.highlight.border_width,
                "video_gravity": self.highlight.video_gravity,
            },
            "window_name": self.window_name,
            "view_width": self.view_width,
            "view_height": self.view_height,
            "show_status": self.show_status,
        }


# =============================================================================
# DEFAULT CONFIGS
# =============================================================================

# Cheap tracker, lower bar for moving the highlight
FAST_CONFIG = AppConfig(
    camera=CameraConfig(width=640, height=480),
    tracker=TrackerConfig(algorithm="kcf", confidence_threshold=0.7),
)

# Slower tracker, strict confidence gate
ACCURATE_CONFIG = AppConfig(
    tracker=TrackerConfig(algorithm="csrt", confidence_threshold=0.9),
)
