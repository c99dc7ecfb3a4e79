"""Shared fixtures for PhotoLib Edge tests."""

from typing import Callable

import pytest
from PIL import Image

from photolib_edge.camera.base import Capture
from photolib_edge.imaging.yuv import planes_from_image
from photolib_edge.store.photo_store import PhotoStore

# 2017-10-09 12:34:56.789 UTC
CAPTURE_TIMESTAMP = 1507552496789
CAPTURE_PHOTO_ID = "2017-10-09-12-34-56-789"


def make_capture(width: int = 640, height: int = 480, timestamp_millis: int = CAPTURE_TIMESTAMP,
                 x_flipped: bool = False, y_flipped: bool = True,
                 color=(200, 30, 60)) -> Capture:
    """Build a capture whose planes encode a two-tone image."""
    img = Image.new("RGB", (width, height), color=color)
    img.paste((10, 240, 10), (0, 0, max(1, width // 2), max(1, height // 2)))
    return Capture(
        width=width,
        height=height,
        timestamp_millis=timestamp_millis,
        x_flipped=x_flipped,
        y_flipped=y_flipped,
        raw_plane_bytes=planes_from_image(img),
    )


@pytest.fixture
def capture_factory() -> Callable[..., Capture]:
    return make_capture


@pytest.fixture
def capture() -> Capture:
    return make_capture()


@pytest.fixture
def store(tmp_path) -> PhotoStore:
    return PhotoStore(root=tmp_path / "photos")
