#!/usr/bin/env python3
"""
ObjectTracker
=============
Live camera preview. Click an object to start tracking it; the red box
follows it while the tracker is confident.

Run:
  python -m object_tracker --camera 0
  python -m object_tracker --video clip.mp4 --tracker kcf
"""

import argparse
import dataclasses
import logging
import sys

from .camera import CameraSession
from .core.config import AppConfig, TRACKER_ALGORITHMS
from .core.events import EventBus, EventLogger
from .dispatch import MainQueue
from .tracking.controller import TrackingController
from .ui.window import TrackerWindow

logger = logging.getLogger("object_tracker")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Tap-to-track object tracker demo")
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--camera", "-c", type=int, help="Camera device ID")
    parser.add_argument("--video", help="Play a video file instead of a camera")
    parser.add_argument("--tracker", choices=TRACKER_ALGORITHMS, help="OpenCV tracker to use")
    parser.add_argument("--threshold", type=float, help="Min confidence to move the highlight")
    parser.add_argument("--width", type=int, help="Requested capture width")
    parser.add_argument("--height", type=int, help="Requested capture height")
    parser.add_argument("--mirror", action="store_true", help="Flip frames horizontally")
    parser.add_argument("--frames", "-n", type=int, default=0, help="Stop after N frames (0=unlimited)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def load_config(args: argparse.Namespace) -> AppConfig:
    """Config file first, then command line overrides."""
    config = AppConfig.from_yaml(args.config) if args.config else AppConfig()

    camera_overrides = {}
    if args.camera is not None:
        camera_overrides["device"] = args.camera
    if args.video:
        camera_overrides["video_path"] = args.video
    if args.width is not None:
        camera_overrides["width"] = args.width
    if args.height is not None:
        camera_overrides["height"] = args.height
    if args.mirror:
        camera_overrides["mirror"] = True

    tracker_overrides = {}
    if args.tracker:
        tracker_overrides["algorithm"] = args.tracker
    if args.threshold is not None:
        tracker_overrides["confidence_threshold"] = args.threshold

    return dataclasses.replace(
        config,
        camera=dataclasses.replace(config.camera, **camera_overrides),
        tracker=dataclasses.replace(config.tracker, **tracker_overrides),
    )


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    try:
        config = load_config(args)
    except (OSError, ValueError, TypeError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    event_bus = EventBus()
    event_bus.subscribe(None, EventLogger(logging.DEBUG))

    session = CameraSession(config.camera, event_bus=event_bus)
    controller = TrackingController(
        session,
        config=config,
        main_queue=MainQueue(),
        event_bus=event_bus,
    )

    try:
        TrackerWindow(controller, config).run(max_frames=args.frames)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        event_bus.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
