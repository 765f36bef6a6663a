#!/usr/bin/env python3
"""
Drawable pieces of the tracking screen: the camera preview layer and the
highlight rectangle.
"""

from typing import Optional, Tuple

import cv2
import numpy as np

from ..core.models import NormalizedRect, PixelRect
from ..geometry import (
    RESIZE_ASPECT_FILL,
    content_rect,
    layer_rect_from_metadata_rect,
    metadata_rect_from_layer_rect,
)


class PreviewLayer:
    """
    Scales camera images into a fixed-size layer.

    Also converts rects between layer pixels and the normalized image space,
    which needs the size of the images being shown.
    """

    def __init__(
        self,
        frame_size: Tuple[int, int],
        gravity: str = RESIZE_ASPECT_FILL,
        image_size: Optional[Tuple[int, int]] = None
    ):
        self.frame_size = frame_size
        self.gravity = gravity
        self.image_size = image_size

    @property
    def _effective_image_size(self) -> Tuple[int, int]:
        # Before the first frame the layer maps 1:1
        return self.image_size or self.frame_size

    def metadata_output_rect_converted(self, layer_rect: PixelRect) -> NormalizedRect:
        return metadata_rect_from_layer_rect(
            layer_rect, self.frame_size, self._effective_image_size, self.gravity
        )

    def layer_rect_converted(self, metadata_output_rect: NormalizedRect) -> PixelRect:
        return layer_rect_from_metadata_rect(
            metadata_output_rect, self.frame_size, self._effective_image_size, self.gravity
        )

    def render(self, image: np.ndarray) -> np.ndarray:
        """Return the layer-sized BGR image showing `image` with the layer's gravity."""
        lw, lh = self.frame_size
        ih, iw = image.shape[:2]
        self.image_size = (iw, ih)

        canvas = np.zeros((lh, lw, 3), dtype=np.uint8)
        content = content_rect((lw, lh), (iw, ih), self.gravity)
        if content.is_empty:
            return canvas

        dw = max(1, int(round(content.width)))
        dh = max(1, int(round(content.height)))
        resized = cv2.resize(image, (dw, dh), interpolation=cv2.INTER_LINEAR)
        if resized.ndim == 2:
            resized = cv2.cvtColor(resized, cv2.COLOR_GRAY2BGR)

        x0, y0 = int(round(content.x)), int(round(content.y))
        src_x, src_y = max(0, -x0), max(0, -y0)
        dst_x, dst_y = max(0, x0), max(0, y0)
        w = min(dw - src_x, lw - dst_x)
        h = min(dh - src_y, lh - dst_y)
        if w > 0 and h > 0:
            canvas[dst_y:dst_y + h, dst_x:dst_x + w] = resized[src_y:src_y + h, src_x:src_x + w]
        return canvas


class HighlightView:
    """Red outline drawn over the preview. An empty frame hides it."""

    def __init__(self, border_color: Tuple[int, int, int] = (0, 0, 255), border_width: int = 4):
        self.border_color = border_color
        self.border_width = border_width
        self.frame = PixelRect.ZERO

    @property
    def hidden(self) -> bool:
        return self.frame.is_empty

    def draw(self, canvas: np.ndarray) -> None:
        if self.hidden:
            return
        p1, p2 = self.frame.to_int_corners()
        cv2.rectangle(canvas, p1, p2, self.border_color, self.border_width)
