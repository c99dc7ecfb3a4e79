"""
Mock camera backend for development and testing on machines without a physical camera.

This implementation creates synthetic frames using the Pillow library. Each
frame is filled with a solid color, annotated with a running frame number,
and converted to YUV 4:2:0 planar bytes, the same layout a sensor delivers.

Usage:

```python
from photolib_edge.camera.mock_camera import MockCamera
cam = MockCamera(image_width=640, image_height=480)
capture = cam.capture()
```
"""

from __future__ import annotations

import datetime
import logging
import random
from typing import Optional

from PIL import Image, ImageDraw, ImageFont

from ..imaging.yuv import planes_from_image
from .base import CameraBackend, Capture

logger = logging.getLogger(__name__)


class MockCamera(CameraBackend):
    """Mock camera backend that generates synthetic frames."""

    def __init__(self, image_width: int = 640, image_height: int = 480,
                 x_flipped: bool = False, y_flipped: bool = False,
                 seed: Optional[int] = None) -> None:
        self.image_width = image_width
        self.image_height = image_height
        self.x_flipped = x_flipped
        self.y_flipped = y_flipped
        self._random = random.Random(seed)
        self._frame_count = 0
        self.font = ImageFont.load_default()

    def _now_millis(self) -> int:
        now = datetime.datetime.now(datetime.timezone.utc)
        return int(now.timestamp() * 1000)

    def capture(self) -> Capture:
        """Generate one synthetic frame.

        The frame is a random solid color with the frame number drawn in the
        inverse color.

        Returns:
            A ``Capture`` stamped with the current UTC time.
        """
        self._frame_count += 1
        r, g, b = [self._random.randint(0, 255) for _ in range(3)]
        img = Image.new('RGB', (self.image_width, self.image_height), color=(r, g, b))
        draw = ImageDraw.Draw(img)
        draw.text((10, 10), f'Frame {self._frame_count}', fill=(255 - r, 255 - g, 255 - b), font=self.font)

        capture = Capture(
            width=self.image_width,
            height=self.image_height,
            timestamp_millis=self._now_millis(),
            x_flipped=self.x_flipped,
            y_flipped=self.y_flipped,
            raw_plane_bytes=planes_from_image(img),
        )
        logger.debug('Generated frame %d (%dx%d)', self._frame_count, capture.width, capture.height)
        return capture
