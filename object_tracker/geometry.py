#!/usr/bin/env python3
"""
Coordinate conversion between the three spaces the tracking loop touches.

- layer space: pixels of the on-screen preview, top-left origin
- metadata output space: 0-1 over the captured image, top-left origin
- vision space: 0-1 over the captured image, bottom-left origin

Layer <-> metadata depends on how the preview scales the image into the
layer (video gravity). Metadata <-> vision is a vertical flip.
"""

from typing import Tuple

from .core.models import NormalizedRect, PixelRect

RESIZE_ASPECT_FILL = "resize_aspect_fill"
RESIZE_ASPECT = "resize_aspect"
RESIZE = "resize"

Size = Tuple[float, float]  # (width, height)


def content_rect(layer_size: Size, image_size: Size, gravity: str = RESIZE_ASPECT_FILL) -> PixelRect:
    """
    Where the full captured image lands inside the layer.

    With aspect fill the result is larger than the layer (cropped edges have
    negative origin); with aspect fit it is letterboxed inside it.
    """
    lw, lh = layer_size
    iw, ih = image_size
    if iw <= 0 or ih <= 0 or lw <= 0 or lh <= 0:
        return PixelRect.ZERO

    if gravity == RESIZE:
        return PixelRect(0.0, 0.0, float(lw), float(lh))
    if gravity == RESIZE_ASPECT_FILL:
        scale = max(lw / iw, lh / ih)
    elif gravity == RESIZE_ASPECT:
        scale = min(lw / iw, lh / ih)
    else:
        raise ValueError(f"Unknown video gravity: {gravity!r}")

    dw, dh = iw * scale, ih * scale
    return PixelRect((lw - dw) / 2.0, (lh - dh) / 2.0, dw, dh)


def metadata_rect_from_layer_rect(
    rect: PixelRect,
    layer_size: Size,
    image_size: Size,
    gravity: str = RESIZE_ASPECT_FILL
) -> NormalizedRect:
    """Layer pixels -> normalized top-left image space."""
    content = content_rect(layer_size, image_size, gravity)
    if content.is_empty:
        return NormalizedRect.ZERO
    return NormalizedRect(
        (rect.x - content.x) / content.width,
        (rect.y - content.y) / content.height,
        rect.width / content.width,
        rect.height / content.height,
    )


def layer_rect_from_metadata_rect(
    rect: NormalizedRect,
    layer_size: Size,
    image_size: Size,
    gravity: str = RESIZE_ASPECT_FILL
) -> PixelRect:
    """Normalized top-left image space -> layer pixels."""
    content = content_rect(layer_size, image_size, gravity)
    if content.is_empty:
        return PixelRect.ZERO
    return PixelRect(
        content.x + rect.x * content.width,
        content.y + rect.y * content.height,
        rect.width * content.width,
        rect.height * content.height,
    )


def vision_rect_from_metadata_rect(rect: NormalizedRect) -> NormalizedRect:
    return rect.flipped_vertically()


def metadata_rect_from_vision_rect(rect: NormalizedRect) -> NormalizedRect:
    return rect.flipped_vertically()


def pixel_rect_from_normalized(rect: NormalizedRect, image_size: Size) -> PixelRect:
    """Normalized top-left space -> image pixels."""
    iw, ih = image_size
    return PixelRect(rect.x * iw, rect.y * ih, rect.width * iw, rect.height * ih)


def normalized_rect_from_pixel(rect: PixelRect, image_size: Size) -> NormalizedRect:
    """Image pixels -> normalized top-left space."""
    iw, ih = image_size
    if iw <= 0 or ih <= 0:
        return NormalizedRect.ZERO
    return NormalizedRect(rect.x / iw, rect.y / ih, rect.width / iw, rect.height / ih)
