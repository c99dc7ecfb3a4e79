"""
Host capability detection.

Optional host features are probed once at startup and summarised as a
``Capability`` flag set; call sites branch on the flags instead of probing
for features at the point of use.
"""

from __future__ import annotations

import enum
import logging
import shutil

from PIL import features

from .config import Config

logger = logging.getLogger(__name__)


class Capability(enum.Flag):
    NONE = 0
    JPEG_ENCODER = enum.auto()
    MEDIA_INDEX = enum.auto()


def detect_capabilities(config: Config) -> Capability:
    """Probe the host for the features the service can use."""
    found = Capability.NONE
    if features.check_codec('jpg'):
        found |= Capability.JPEG_ENCODER
    command = config.media_index_command
    if command and shutil.which(command[0]):
        found |= Capability.MEDIA_INDEX
    logger.info('Detected capabilities: %s', found)
    return found
