"""JPEG encoding of rendered rasters."""

from __future__ import annotations

import io

from PIL import Image

DEFAULT_JPEG_QUALITY = 90
MIN_JPEG_QUALITY = 1
MAX_JPEG_QUALITY = 100


def check_jpeg_quality(quality: int) -> int:
    """Return ``quality`` if Pillow's JPEG encoder accepts it.

    Raises:
        ValueError: if ``quality`` is outside 1..100.
    """
    if not MIN_JPEG_QUALITY <= quality <= MAX_JPEG_QUALITY:
        raise ValueError(
            f'JPEG quality must be between {MIN_JPEG_QUALITY} and {MAX_JPEG_QUALITY}, got {quality}'
        )
    return quality


def encode_jpeg(raster: Image.Image, quality: int = DEFAULT_JPEG_QUALITY) -> bytes:
    """Encode a raster as JPEG bytes.

    Modes JPEG cannot hold (RGBA, P, ...) are converted to RGB first.

    Raises:
        ValueError: if ``quality`` is outside 1..100.
        OSError: if the encoder fails.
    """
    check_jpeg_quality(quality)
    if raster.mode not in ('RGB', 'L'):
        raster = raster.convert('RGB')
    buffer = io.BytesIO()
    raster.save(buffer, format='JPEG', quality=quality)
    return buffer.getvalue()
