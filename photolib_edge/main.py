"""
Main orchestration for PhotoLib Edge.

This script coordinates camera capture, photo persistence and retention
cleanup. Captures are taken on one background thread and handed over a
bounded queue to a single save worker, so the blocking file I/O and JPEG
encoding never run on the capture thread. Results are reported through the
``on_saved`` / ``on_failed`` callbacks on the worker thread. The core
components are configurable via a YAML configuration file (see
:mod:`photolib_edge.config`).

Usage:

```bash
python -m photolib_edge.main run --config config/pi.yaml
python -m photolib_edge.main capture --config config/pi.yaml
python -m photolib_edge.main list --config config/pi.yaml
python -m photolib_edge.main cleanup --config config/pi.yaml
```
"""

from __future__ import annotations

import argparse
import datetime
import logging
import queue
import signal
import sys
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from .capabilities import Capability, detect_capabilities
from .config import Config
from .camera.base import CameraBackend, Capture
from .camera.mock_camera import MockCamera
from .errors import PhotoStoreError
from .imaging.yuv import renderer_for
from .store.media_index import CommandMediaIndexNotifier, MediaIndexNotifier
from .store.photo_store import PhotoStore, SaveResult, timestamp_for_photo_id

MILLIS_PER_DAY = 24 * 60 * 60 * 1000


def setup_logging(config: Config) -> None:
    """Configure logging to file and console."""
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, config.log_level, logging.INFO))
    formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(threadName)s - %(message)s'
    )
    # File handler
    fh = logging.FileHandler(config.log_file)
    fh.setFormatter(formatter)
    logger.addHandler(fh)
    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(formatter)
    logger.addHandler(ch)


def _log_saved(photo_id: str) -> None:
    logging.info(f'Stored photo {photo_id}')


def _log_failed(error: PhotoStoreError) -> None:
    logging.error(f'Photo was not stored: {error}')


class PhotoLibEdge:
    """Main controller for PhotoLib Edge operations."""

    def __init__(self, config: Config,
                 on_saved: Callable[[str], None] = _log_saved,
                 on_failed: Callable[[PhotoStoreError], None] = _log_failed) -> None:
        self.config = config
        # Ensure directories exist
        config.ensure_paths()

        self.capabilities = detect_capabilities(config)
        if Capability.JPEG_ENCODER not in self.capabilities:
            raise RuntimeError('Pillow was built without JPEG support')

        self.camera: CameraBackend = self._init_camera()
        self.store = PhotoStore(
            root=config.storage_root,
            jpeg_quality=config.jpeg_quality,
            thumbnail_width=config.thumbnail_width,
            thumbnail_height=config.thumbnail_height,
            media_notifier=self._init_media_notifier(),
        )
        self.on_saved = on_saved
        self.on_failed = on_failed

        self._queue: 'queue.Queue[Capture]' = queue.Queue(maxsize=config.queue_size)
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []

    def _init_camera(self) -> CameraBackend:
        """Instantiate the camera backend based on configuration."""
        if self.config.camera_backend == 'mock':
            return MockCamera(image_width=self.config.image_width, image_height=self.config.image_height)
        raise ValueError(f'Unknown camera backend: {self.config.camera_backend}')

    def _init_media_notifier(self) -> Optional[MediaIndexNotifier]:
        if Capability.MEDIA_INDEX in self.capabilities:
            return CommandMediaIndexNotifier(self.config.media_index_command)
        if self.config.media_index_command:
            logging.warning(
                f'Media index command {self.config.media_index_command[0]!r} not found; '
                'notifications disabled'
            )
        return None

    def save_capture(self, capture: Capture) -> SaveResult:
        """Persist one capture and report the outcome through the callbacks."""
        result = self.store.save(capture, renderer_for(capture))
        if result.ok:
            self.on_saved(result.photo_id)
        else:
            self.on_failed(result.error)
        return result

    def cleanup_expired(self, now_millis: Optional[int] = None) -> List[str]:
        """Delete photos older than ``retention_days``. Returns the deleted ids.

        Partial records left by failed saves are swept along with complete ones.
        """
        if self.config.retention_days <= 0:
            return []
        if now_millis is None:
            now_millis = int(datetime.datetime.now(datetime.timezone.utc).timestamp() * 1000)
        cutoff = now_millis - self.config.retention_days * MILLIS_PER_DAY
        deleted: List[str] = []
        # Ids sort chronologically, so stop at the first one inside the window
        for photo_id in self.store.artifact_ids():
            if timestamp_for_photo_id(photo_id) >= cutoff:
                break
            if self.store.delete(photo_id):
                deleted.append(photo_id)
        if deleted:
            logging.info(f'Cleaned up {len(deleted)} expired photos')
        return deleted

    # Loop implementations

    def capture_loop(self) -> None:
        """Periodically capture a frame and queue it for saving."""
        while not self._stop_event.is_set():
            try:
                capture = self.camera.capture()
                try:
                    self._queue.put_nowait(capture)
                except queue.Full:
                    logging.warning('Save queue full; dropping capture')
            except Exception as exc:
                logging.exception('Capture loop error: %s', exc)
            # Sleep until next capture
            self._stop_event.wait(self.config.capture_interval)

    def save_loop(self) -> None:
        """Save queued captures one at a time until stopped and drained."""
        while not (self._stop_event.is_set() and self._queue.empty()):
            try:
                capture = self._queue.get(timeout=0.5)
            except queue.Empty:
                continue
            try:
                self.save_capture(capture)
            except Exception as exc:
                logging.exception('Save loop error: %s', exc)
            finally:
                self._queue.task_done()

    def cleanup_loop(self) -> None:
        """Periodically delete photos past the retention window."""
        while not self._stop_event.is_set():
            try:
                self.cleanup_expired()
            except Exception as exc:
                logging.exception('Cleanup loop error: %s', exc)
            self._stop_event.wait(self.config.cleanup_interval)

    def start(self) -> None:
        """Start all background threads."""
        loops = [
            ('CaptureLoop', self.capture_loop),
            ('SaveLoop', self.save_loop),
            ('CleanupLoop', self.cleanup_loop),
        ]
        for name, target in loops:
            t = threading.Thread(name=name, target=target)
            t.daemon = True
            t.start()
            self._threads.append(t)

    def stop(self) -> None:
        """Signal threads to stop and wait for completion."""
        self._stop_event.set()
        for t in self._threads:
            t.join(timeout=5.0)
        self._threads.clear()


# Command handlers

def cmd_run(service: PhotoLibEdge, args: argparse.Namespace) -> int:
    def handle_sigterm(signum, frame):
        logging.info('Shutting down...')
        service.stop()
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_sigterm)
    signal.signal(signal.SIGTERM, handle_sigterm)
    service.start()
    # Keep the main thread alive
    while True:
        time.sleep(1)


def cmd_capture(service: PhotoLibEdge, args: argparse.Namespace) -> int:
    result = service.save_capture(service.camera.capture())
    if not result.ok:
        return 1
    print(result.photo_id)
    return 0


def cmd_list(service: PhotoLibEdge, args: argparse.Namespace) -> int:
    for photo_id in service.store.photo_ids():
        print(photo_id)
    return 0


def cmd_cleanup(service: PhotoLibEdge, args: argparse.Namespace) -> int:
    deleted = service.cleanup_expired()
    print(f'Deleted {len(deleted)} photos')
    return 0


Handler = Callable[[PhotoLibEdge, argparse.Namespace], int]

COMMANDS: Dict[str, Tuple[Handler, str]] = {
    'run': (cmd_run, 'Run capture, save and cleanup loops until interrupted'),
    'capture': (cmd_capture, 'Capture and store a single photo'),
    'list': (cmd_list, 'List stored photo ids'),
    'cleanup': (cmd_cleanup, 'Delete photos older than the retention window'),
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='PhotoLib Edge Service')
    subparsers = parser.add_subparsers(dest='command', required=True)
    for name, (handler, help_text) in COMMANDS.items():
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('--config', '-c', type=str, required=True, help='Path to YAML configuration file')
        sub.set_defaults(handler=handler)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config = Config.from_yaml(args.config)
    config.ensure_paths()
    setup_logging(config)
    service = PhotoLibEdge(config)
    return args.handler(service, args)


if __name__ == '__main__':
    sys.exit(main())
