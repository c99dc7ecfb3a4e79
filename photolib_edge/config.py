"""
Configuration management for PhotoLib Edge.

This module defines a dataclass ``Config`` that holds configuration for the
edge software. It can be loaded from a YAML file or constructed manually. The
configuration covers the photo storage location, capture and encoding
settings, intervals for the service loops and cleanup, and hardware backend
selection.

Example YAML configuration (config/pi.yaml):

```yaml
storage_root: "./edge_data/photos"
camera_backend: "mock"
image_width: 640
image_height: 480
jpeg_quality: 90
thumbnail_width: 320
thumbnail_height: 240
capture_interval: 60        # seconds between captures
cleanup_interval: 3600      # seconds between cleanup runs
retention_days: 30          # 0 keeps photos forever
queue_size: 4               # captures waiting to be saved
media_index_command: null   # e.g. ["touch"]
log_file: "./edge_data/edge.log"
log_level: "INFO"
```

Using the ``Config.from_yaml`` method simplifies loading configuration:

```python
from photolib_edge.config import Config
config = Config.from_yaml('config/pi.yaml')
```
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from .imaging.encoding import check_jpeg_quality


@dataclass
class Config:
    """Configuration settings for the PhotoLib Edge software."""

    storage_root: str
    camera_backend: str = 'mock'
    image_width: int = 640
    image_height: int = 480
    jpeg_quality: int = 90
    thumbnail_width: int = 320
    thumbnail_height: int = 240
    capture_interval: int = 60  # seconds
    cleanup_interval: int = 3600  # seconds
    retention_days: int = 30
    queue_size: int = 4
    media_index_command: Optional[List[str]] = None
    log_file: str = './photolib_edge.log'
    log_level: str = 'INFO'

    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        check_jpeg_quality(self.jpeg_quality)

    @classmethod
    def from_yaml(cls, path: str) -> 'Config':
        """Load configuration from a YAML file.

        Raises:
            FileNotFoundError: if the YAML file cannot be found.
            yaml.YAMLError: if the YAML file is invalid.
            KeyError: if required keys are missing.
            ValueError: if ``jpeg_quality`` is outside 1..100.
        """
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        # Basic validation of required keys
        required_keys = ['storage_root']
        missing = [k for k in required_keys if k not in data]
        if missing:
            raise KeyError(f'Missing required configuration keys: {missing}')

        command = data.get('media_index_command')
        if isinstance(command, str):
            command = command.split()

        return cls(
            storage_root=data['storage_root'],
            camera_backend=data.get('camera_backend', 'mock'),
            image_width=int(data.get('image_width', 640)),
            image_height=int(data.get('image_height', 480)),
            jpeg_quality=int(data.get('jpeg_quality', 90)),
            thumbnail_width=int(data.get('thumbnail_width', 320)),
            thumbnail_height=int(data.get('thumbnail_height', 240)),
            capture_interval=data.get('capture_interval', 60),
            cleanup_interval=data.get('cleanup_interval', 3600),
            retention_days=data.get('retention_days', 30),
            queue_size=data.get('queue_size', 4),
            media_index_command=command,
            log_file=data.get('log_file', './photolib_edge.log'),
            log_level=str(data.get('log_level', 'INFO')).upper(),
            extra={k: v for k, v in data.items() if k not in cls.__annotations__},
        )

    def ensure_paths(self) -> None:
        """Ensure that filesystem paths exist for photo storage and logs.

        Creates directories as needed. This method is idempotent.
        """
        if not os.path.exists(self.storage_root):
            os.makedirs(self.storage_root, exist_ok=True)

        # Create directory for log file
        log_dir = os.path.dirname(self.log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)
