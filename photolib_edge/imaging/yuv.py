"""
Rendering of raw YUV 4:2:0 planes into Pillow images.

Raw plane layout (I420): a full resolution Y plane followed by the U (Cb)
and V (Cr) planes, each ``ceil(width / 2) x ceil(height / 2)``.
"""

from __future__ import annotations

import functools
from typing import Callable, Tuple

from PIL import Image

from ..camera.base import Capture

Renderer = Callable[[int, int], Image.Image]


def _chroma_size(width: int, height: int) -> Tuple[int, int]:
    return (width + 1) // 2, (height + 1) // 2


def render_capture(capture: Capture, width: int, height: int) -> Image.Image:
    """Render a capture as an RGB image of exactly ``width x height``.

    The capture's x/y flips are applied before resizing.

    Raises:
        ValueError: if the requested size is not positive or the plane
            data is shorter than the capture size requires.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f'Invalid render size {width}x{height}')
    data = capture.raw_plane_bytes
    if len(data) < capture.expected_plane_size:
        raise ValueError(
            f'Plane data has {len(data)} bytes, expected {capture.expected_plane_size}'
        )
    size = (capture.width, capture.height)
    chroma_size = _chroma_size(*size)
    y_end = capture.width * capture.height
    u_end = y_end + chroma_size[0] * chroma_size[1]
    v_end = u_end + chroma_size[0] * chroma_size[1]

    y_plane = Image.frombytes('L', size, data[:y_end])
    u_plane = Image.frombytes('L', chroma_size, data[y_end:u_end]).resize(size, Image.Resampling.NEAREST)
    v_plane = Image.frombytes('L', chroma_size, data[u_end:v_end]).resize(size, Image.Resampling.NEAREST)
    image = Image.merge('YCbCr', (y_plane, u_plane, v_plane)).convert('RGB')

    if capture.x_flipped:
        image = image.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
    if capture.y_flipped:
        image = image.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
    if image.size != (width, height):
        image = image.resize((width, height), Image.Resampling.BILINEAR)
    return image


def renderer_for(capture: Capture) -> Renderer:
    """Return the ``render(width, height)`` callable for one capture."""
    return functools.partial(render_capture, capture)


def planes_from_image(image: Image.Image) -> bytes:
    """Convert an image into YUV 4:2:0 planar bytes (inverse of rendering)."""
    y_plane, u_plane, v_plane = image.convert('YCbCr').split()
    chroma_size = _chroma_size(*image.size)
    return b''.join([
        y_plane.tobytes(),
        u_plane.resize(chroma_size, Image.Resampling.BOX).tobytes(),
        v_plane.resize(chroma_size, Image.Resampling.BOX).tobytes(),
    ])
