"""
Error taxonomy for PhotoLib Edge.

Every failure inside :meth:`PhotoStore.save` is reported as a subclass of
:class:`PhotoStoreError`, with the underlying exception chained as
``__cause__``. The scaling functions raise :class:`DomainError` for inputs
outside their domain; they never perform I/O.
"""

from __future__ import annotations


class PhotoStoreError(Exception):
    """Base exception for photo store failures."""


class DirectoryCreationError(PhotoStoreError):
    """The photo or thumbnail directory could not be created."""


class CompressionIOError(PhotoStoreError):
    """Writing the compressed raw plane data failed."""


class MetadataSerializationError(PhotoStoreError):
    """The metadata could not be serialized or written."""


class RenderError(PhotoStoreError):
    """The render collaborator failed to produce a raster."""


class EncodeError(PhotoStoreError):
    """A raster could not be encoded."""


class ImageEncodeIOError(PhotoStoreError):
    """Writing an encoded image file failed."""


class PhotoIdError(PhotoStoreError):
    """No photo id can be derived from the capture timestamp."""


class PhotoNotFoundError(PhotoStoreError):
    """No complete record exists for a photo id."""


class DomainError(ValueError):
    """Scaling input outside the function's domain."""
