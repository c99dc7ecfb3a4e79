"""
Media index notification.

After a full-size photo is written the host's media catalog can be told
about it so the file shows up in galleries. Notification is best effort and
fire-and-forget: the indexing command runs detached and a failure to launch
it is logged and otherwise ignored.

Example ``media_index_command`` values: ``["touch"]`` for indexers that watch
modification times, or a catalog tool such as ``["tracker3", "index",
"--file"]``.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from pathlib import Path
from typing import Callable, List, Sequence, Union

logger = logging.getLogger(__name__)

MediaIndexNotifier = Callable[[Path], None]


class CommandMediaIndexNotifier:
    """Runs ``command + [path]`` for every new media file."""

    def __init__(self, command: Sequence[str]) -> None:
        if not command:
            raise ValueError('Media index command cannot be empty')
        self.command: List[str] = list(command)

    def __call__(self, path: Union[str, Path]) -> None:
        cmd = self.command + [str(path)]
        try:
            process = subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except OSError as exc:
            logger.warning('Media index notification failed for %s: %s', path, exc)
            return
        # Reap the child in the background so it never lingers as a zombie
        reaper = threading.Thread(name='MediaIndexReaper', target=process.wait)
        reaper.daemon = True
        reaper.start()
        logger.debug('Media index notified for %s', path)
