"""Single-agent lock held for the lifetime of an agent run."""

from __future__ import annotations

import fcntl
import logging
import os
from pathlib import Path
from typing import IO, Optional

logger = logging.getLogger("uniqproc.agent.instance_lock")


class AgentLock:
    """Non-blocking exclusive `flock` on a file next to the channel endpoint.

    The kernel drops the lock when the holding process dies, so a crashed
    agent never leaves a lock that blocks the next one.
    """

    def __init__(self, lock_path: Path) -> None:
        self.lock_path = lock_path
        self._file: Optional[IO[str]] = None

    @property
    def held(self) -> bool:
        return self._file is not None

    def acquire(self) -> bool:
        """Return True if the lock was taken, False if another agent holds it."""
        if self._file is not None:
            return True
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        lock_file = open(self.lock_path, "a+")
        try:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            lock_file.close()
            logger.info("Agent lock %s is held by another agent", self.lock_path)
            return False
        lock_file.seek(0)
        lock_file.truncate()
        lock_file.write(str(os.getpid()))
        lock_file.flush()
        self._file = lock_file
        logger.debug("Acquired agent lock %s", self.lock_path)
        return True

    def release(self) -> None:
        """Release the lock. Safe to call without a prior acquire."""
        if self._file is None:
            return
        try:
            fcntl.flock(self._file.fileno(), fcntl.LOCK_UN)
        finally:
            self._file.close()
            self._file = None
        logger.debug("Released agent lock %s", self.lock_path)
