"""
Loading images at reduced resolution.

Pillow counterparts of decode-time subsampling: the sample factor comes from
:mod:`photolib_edge.imaging.scaling` and the image is reduced by that
integer factor with :meth:`PIL.Image.Image.reduce`, which yields
``ceil(size / factor)`` in each dimension.
"""

from __future__ import annotations

from pathlib import Path
from typing import Tuple, Union

from PIL import Image

from .scaling import maximum_size_sample_factor, minimum_size_sample_factor, scale_to_fit

PathLike = Union[str, Path]


def image_size(path: PathLike) -> Tuple[int, int]:
    """Return ``(width, height)`` of an image file without decoding pixels."""
    with Image.open(path) as img:
        return img.size


def _load_reduced(path: PathLike, factor: int) -> Image.Image:
    with Image.open(path) as img:
        img.load()
        if factor > 1:
            return img.reduce(factor)
        return img.copy()


def load_with_minimum_size(path: PathLike, min_width: int, min_height: int) -> Image.Image:
    """Load an image reduced by an integer factor, staying at least
    ``min_width x min_height`` when the source is that large.
    """
    width, height = image_size(path)
    factor = minimum_size_sample_factor(width, height, min_width, min_height)
    return _load_reduced(path, factor)


def load_with_maximum_size(path: PathLike, max_width: int, max_height: int) -> Image.Image:
    """Load an image reduced by a power-of-two factor so that its width and
    height are no greater than ``max_width`` and ``max_height``.
    """
    width, height = image_size(path)
    factor = maximum_size_sample_factor(width, height, max_width, max_height)
    return _load_reduced(path, factor)


def scaled_to_fit(image: Image.Image, size: int) -> Image.Image:
    """Return a copy of ``image`` whose larger side equals ``size``."""
    target = scale_to_fit(image.width, image.height, size)
    return image.resize(target, Image.Resampling.NEAREST)
