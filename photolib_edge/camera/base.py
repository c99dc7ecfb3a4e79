"""
Camera backend abstractions for PhotoLib Edge.

This module defines the in-memory ``Capture`` produced by a camera and the
interface that all camera backends must implement. A capture holds the raw
YUV 4:2:0 planar bytes of one frame together with its size, orientation and
timestamp. It is owned by the caller; the photo store only reads it.

Implementations may use synthetic data for development/testing or interact
with real hardware.
"""

from __future__ import annotations
from dataclasses import dataclass


def yuv420_plane_size(width: int, height: int) -> int:
    """Size in bytes of a YUV 4:2:0 planar frame (full Y, quarter U and V)."""
    chroma_width = (width + 1) // 2
    chroma_height = (height + 1) // 2
    return width * height + 2 * chroma_width * chroma_height


@dataclass(frozen=True)
class Capture:
    """One acquired frame before persistence."""

    width: int
    height: int
    timestamp_millis: int
    x_flipped: bool
    y_flipped: bool
    raw_plane_bytes: bytes

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f'Invalid capture size {self.width}x{self.height}')

    @property
    def expected_plane_size(self) -> int:
        return yuv420_plane_size(self.width, self.height)


class CameraBackend:
    """Abstract base class for camera backends."""

    def capture(self) -> Capture:
        """Capture a single frame.

        Returns:
            The captured frame.

        Raises:
            NotImplementedError: if not implemented by subclass.
        """
        raise NotImplementedError('capture must be implemented by subclasses')
