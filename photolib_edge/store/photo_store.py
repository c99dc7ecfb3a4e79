"""
Directory-based photo store.

Each capture is persisted as four artifacts named by a photo id derived from
the capture timestamp (``yyyy-MM-dd-HH-mm-ss-SSS``, UTC)::

    {root}/{photo_id}/image.gz          gzip raw YUV planes
    {root}/{photo_id}/metadata.json     size, flips and timestamp
    {root}/{photo_id}.jpg               full-size JPEG
    {root}/thumbnails/{photo_id}.jpg    thumbnail JPEG
    {root}/thumbnails/.nomedia          marker keeping thumbnails out of media indexes

``PhotoStore.save`` writes them in that order and returns a ``SaveResult``:
the photo id when every artifact is written, otherwise the first error.
Nothing is rolled back on failure, so earlier artifacts may remain on disk,
but a photo id is never returned for an incomplete record.

Usage:

```python
from photolib_edge.imaging.yuv import renderer_for
from photolib_edge.store.photo_store import PhotoStore

store = PhotoStore('./photos')
result = store.save(capture, renderer_for(capture))
if result.ok:
    print(result.photo_id)
```
"""

from __future__ import annotations

import datetime
import gzip
import json
import logging
import re
import shutil
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from PIL import Image

from ..camera.base import Capture
from ..errors import (
    CompressionIOError,
    DirectoryCreationError,
    EncodeError,
    ImageEncodeIOError,
    MetadataSerializationError,
    PhotoIdError,
    PhotoNotFoundError,
    PhotoStoreError,
    RenderError,
)
from ..imaging.encoding import DEFAULT_JPEG_QUALITY, encode_jpeg
from ..imaging.scaling import scale_to_exact_edge
from ..imaging.yuv import Renderer
from .media_index import MediaIndexNotifier

logger = logging.getLogger(__name__)

THUMBNAIL_DIR_NAME = 'thumbnails'
NO_MEDIA_MARKER = '.nomedia'
RAW_IMAGE_NAME = 'image.gz'
METADATA_NAME = 'metadata.json'
IMAGE_SUFFIX = '.jpg'
THUMBNAIL_WIDTH = 320
THUMBNAIL_HEIGHT = 240

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)
_PHOTO_ID_SECONDS_FORMAT = '%Y-%m-%d-%H-%M-%S'
_PHOTO_ID_RE = re.compile(r'\d{4}-\d{2}-\d{2}-\d{2}-\d{2}-\d{2}-\d{3}')

Encoder = Callable[[Image.Image, int], bytes]


def photo_id_for_timestamp(millis: int) -> str:
    """Format an epoch-millisecond timestamp as a photo id (UTC)."""
    moment = _EPOCH + datetime.timedelta(milliseconds=millis)
    return f'{moment.strftime(_PHOTO_ID_SECONDS_FORMAT)}-{moment.microsecond // 1000:03d}'


def timestamp_for_photo_id(photo_id: str) -> int:
    """Inverse of :func:`photo_id_for_timestamp`.

    Raises:
        ValueError: if ``photo_id`` is not a well-formed photo id.
    """
    if not _PHOTO_ID_RE.fullmatch(photo_id):
        raise ValueError(f'Invalid photo id: {photo_id!r}')
    seconds = datetime.datetime.strptime(photo_id[:-4], _PHOTO_ID_SECONDS_FORMAT)
    delta = seconds.replace(tzinfo=datetime.timezone.utc) - _EPOCH
    return (delta.days * 86400 + delta.seconds) * 1000 + int(photo_id[-3:])


@dataclass(frozen=True)
class PhotoMetadata:
    """Contents of ``metadata.json``."""

    width: int
    height: int
    x_flipped: bool
    y_flipped: bool
    timestamp: int

    @classmethod
    def from_capture(cls, capture: Capture) -> 'PhotoMetadata':
        return cls(
            width=capture.width,
            height=capture.height,
            x_flipped=capture.x_flipped,
            y_flipped=capture.y_flipped,
            timestamp=capture.timestamp_millis,
        )

    def to_json_dict(self) -> Dict[str, Any]:
        # Key names and order are part of the on-disk format
        return {
            'width': int(self.width),
            'height': int(self.height),
            'xFlipped': bool(self.x_flipped),
            'yFlipped': bool(self.y_flipped),
            'timestamp': int(self.timestamp),
        }

    @classmethod
    def from_json_dict(cls, data: Dict[str, Any]) -> 'PhotoMetadata':
        return cls(
            width=data['width'],
            height=data['height'],
            x_flipped=data['xFlipped'],
            y_flipped=data['yFlipped'],
            timestamp=data['timestamp'],
        )


@dataclass(frozen=True)
class SaveSuccess:
    photo_id: str

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class SaveFailure:
    error: PhotoStoreError

    @property
    def ok(self) -> bool:
        return False


SaveResult = Union[SaveSuccess, SaveFailure]


class PhotoStore:
    """Persists captures as photo records under a root directory."""

    def __init__(self, root: Union[str, Path],
                 encoder: Encoder = encode_jpeg,
                 jpeg_quality: int = DEFAULT_JPEG_QUALITY,
                 thumbnail_width: int = THUMBNAIL_WIDTH,
                 thumbnail_height: int = THUMBNAIL_HEIGHT,
                 media_notifier: Optional[MediaIndexNotifier] = None) -> None:
        if thumbnail_width <= 0 or thumbnail_height <= 0:
            raise ValueError(f'Invalid thumbnail size {thumbnail_width}x{thumbnail_height}')
        self.root = Path(root)
        self.thumbnail_directory = self.root / THUMBNAIL_DIR_NAME
        self.encoder = encoder
        self.jpeg_quality = jpeg_quality
        self.thumbnail_width = thumbnail_width
        self.thumbnail_height = thumbnail_height
        self.media_notifier = media_notifier

    # Paths

    def photo_directory(self, photo_id: str) -> Path:
        return self.root / _checked(photo_id)

    def full_image_path(self, photo_id: str) -> Path:
        return self.root / f'{_checked(photo_id)}{IMAGE_SUFFIX}'

    def thumbnail_path(self, photo_id: str) -> Path:
        return self.thumbnail_directory / f'{_checked(photo_id)}{IMAGE_SUFFIX}'

    # Writing

    def save(self, capture: Capture, render: Renderer) -> SaveResult:
        """Write all artifacts for one capture.

        Args:
            capture: The capture to persist. Only read.
            render: ``render(width, height)`` returning a Pillow image of the
                capture at exactly that size.

        Returns:
            ``SaveSuccess`` with the photo id if every artifact was written,
            otherwise ``SaveFailure`` holding the first error.
        """
        try:
            photo_id = self._photo_id_for(capture)
            logger.info('Saving photo %s', photo_id)
            self._write_record(photo_id, capture, render)
        except PhotoStoreError as exc:
            logger.error('Failed to save capture taken at %d: %s', capture.timestamp_millis, exc)
            return SaveFailure(exc)
        logger.info('Saved photo %s', photo_id)
        return SaveSuccess(photo_id)

    def _photo_id_for(self, capture: Capture) -> str:
        try:
            return _checked(photo_id_for_timestamp(capture.timestamp_millis))
        except (OverflowError, ValueError) as exc:
            raise PhotoIdError(
                f'No photo id for timestamp {capture.timestamp_millis}: {exc}'
            ) from exc

    def _write_record(self, photo_id: str, capture: Capture, render: Renderer) -> None:
        photo_dir = self.photo_directory(photo_id)
        self._make_directories(photo_dir)
        self._write_raw(photo_dir / RAW_IMAGE_NAME, capture)
        self._write_metadata(photo_dir / METADATA_NAME, PhotoMetadata.from_capture(capture))

        full_path = self.full_image_path(photo_id)
        self._write_rendered(render, capture.width, capture.height, full_path)
        self._notify_media_index(full_path)

        thumb_width, thumb_height = scale_to_exact_edge(
            capture.width, capture.height, self.thumbnail_width, self.thumbnail_height)
        self._write_rendered(render, thumb_width, thumb_height, self.thumbnail_path(photo_id))

    def _make_directories(self, photo_dir: Path) -> None:
        try:
            photo_dir.mkdir(parents=True, exist_ok=True)
            self.thumbnail_directory.mkdir(parents=True, exist_ok=True)
            no_media = self.thumbnail_directory / NO_MEDIA_MARKER
            if not no_media.exists():
                no_media.touch()
        except OSError as exc:
            raise DirectoryCreationError(f'Failed to create directories for {photo_dir}: {exc}') from exc

    def _write_raw(self, path: Path, capture: Capture) -> None:
        try:
            with gzip.open(path, 'wb') as f:
                f.write(capture.raw_plane_bytes)
            compressed_size = path.stat().st_size
        except (OSError, zlib.error) as exc:
            raise CompressionIOError(f'Failed to write {path}: {exc}') from exc
        compressed_percent = round(100.0 * compressed_size / capture.expected_plane_size)
        logger.info('Wrote %d bytes, compressed to %d%%', compressed_size, compressed_percent)

    def _write_metadata(self, path: Path, metadata: PhotoMetadata) -> None:
        try:
            text = json.dumps(metadata.to_json_dict(), indent=2)
            path.write_bytes(text.encode('utf-8'))
        except (TypeError, ValueError, OSError) as exc:
            raise MetadataSerializationError(f'Failed to write {path}: {exc}') from exc

    def _write_rendered(self, render: Renderer, width: int, height: int, path: Path) -> None:
        try:
            raster = render(width, height)
        except Exception as exc:
            raise RenderError(f'Failed to render {width}x{height} image: {exc}') from exc
        try:
            data = self.encoder(raster, self.jpeg_quality)
        except Exception as exc:
            raise EncodeError(f'Failed to encode {width}x{height} image: {exc}') from exc
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise ImageEncodeIOError(f'Failed to write {path}: {exc}') from exc
        logger.debug('Wrote %s (%dx%d, %d bytes)', path, width, height, len(data))

    def _notify_media_index(self, path: Path) -> None:
        if self.media_notifier is None:
            return
        try:
            self.media_notifier(path)
        except Exception as exc:
            logger.warning('Media index notification failed for %s: %s', path, exc)

    # Reading

    def is_complete(self, photo_id: str) -> bool:
        """True when all four artifacts of the record exist."""
        photo_dir = self.photo_directory(photo_id)
        return all(path.is_file() for path in (
            photo_dir / RAW_IMAGE_NAME,
            photo_dir / METADATA_NAME,
            self.full_image_path(photo_id),
            self.thumbnail_path(photo_id),
        ))

    def artifact_ids(self) -> List[str]:
        """Return every id owning at least one artifact, complete or not, oldest first."""
        ids = set()
        for directory in (self.root, self.thumbnail_directory):
            if not directory.is_dir():
                continue
            for entry in directory.iterdir():
                name = entry.name
                if entry.is_file() and name.endswith(IMAGE_SUFFIX):
                    name = name[:-len(IMAGE_SUFFIX)]
                elif not (entry.is_dir() and directory == self.root):
                    continue
                if _PHOTO_ID_RE.fullmatch(name):
                    ids.add(name)
        return sorted(ids)

    def photo_ids(self) -> List[str]:
        """Return ids of complete records, oldest first.

        Artifacts left behind by a failed save are not listed.
        """
        return [photo_id for photo_id in self.artifact_ids() if self.is_complete(photo_id)]

    def _require_complete(self, photo_id: str) -> Path:
        if not self.is_complete(photo_id):
            raise PhotoNotFoundError(f'Photo not found: {photo_id}')
        return self.photo_directory(photo_id)

    def load_metadata(self, photo_id: str) -> PhotoMetadata:
        """Read back ``metadata.json`` for a record.

        Raises:
            PhotoNotFoundError: if the record is missing or incomplete.
        """
        path = self._require_complete(photo_id) / METADATA_NAME
        return PhotoMetadata.from_json_dict(json.loads(path.read_text(encoding='utf-8')))

    def read_raw_bytes(self, photo_id: str) -> bytes:
        """Return the decompressed raw plane bytes of a record.

        Raises:
            PhotoNotFoundError: if the record is missing or incomplete.
        """
        path = self._require_complete(photo_id) / RAW_IMAGE_NAME
        with gzip.open(path, 'rb') as f:
            return f.read()

    def delete(self, photo_id: str) -> bool:
        """Remove every artifact of a record. Returns False if none existed."""
        removed = False
        photo_dir = self.photo_directory(photo_id)
        if photo_dir.is_dir():
            shutil.rmtree(photo_dir)
            removed = True
        for path in (self.full_image_path(photo_id), self.thumbnail_path(photo_id)):
            if path.exists():
                path.unlink()
                removed = True
        if removed:
            logger.info('Deleted photo %s', photo_id)
        return removed


def _checked(photo_id: str) -> str:
    if not _PHOTO_ID_RE.fullmatch(photo_id):
        raise ValueError(f'Invalid photo id: {photo_id!r}')
    return photo_id
