"""Spawn, wait for and signal shell commands on behalf of named entries."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import subprocess

from uniqproc.errors import SpawnError

logger = logging.getLogger("uniqproc.agent.process_manager")

CHILD_POLL_INTERVAL_SECONDS = 0.05
KILL_SIGNAL = signal.SIGTERM


def pid_exists(pid: int) -> bool:
    """Check whether pid exists in the current process table."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    except OSError:
        return False
    return True


class ProcessManager:
    """Tracks Popen handles for children spawned by this agent.

    Pids adopted from a previous agent session have no handle here; they
    can still be signalled by `kill()`.
    """

    def __init__(self, poll_interval: float = CHILD_POLL_INTERVAL_SECONDS) -> None:
        self.poll_interval = poll_interval
        self._children: dict[int, subprocess.Popen] = {}

    def spawn(self, command: str) -> int:
        """Start command through the shell and return its pid immediately."""
        try:
            # New session: the child outlives agent shutdown and is killed as a group.
            process = subprocess.Popen(command, shell=True, start_new_session=True)
        except OSError as exc:
            raise SpawnError(f"cannot start {command!r}: {exc}") from exc
        self._children[process.pid] = process
        logger.info("Spawned pid=%s command=%r", process.pid, command)
        return process.pid

    async def wait(self, pid: int) -> int:
        """Wait for a spawned child to exit and return its exit status."""
        process = self._children.get(pid)
        if process is None:
            raise KeyError(f"pid {pid} was not spawned by this agent")
        try:
            while process.poll() is None:
                await asyncio.sleep(self.poll_interval)
        finally:
            if process.returncode is not None:
                self._children.pop(pid, None)
        logger.info("pid=%s exited with code %s", pid, process.returncode)
        return process.returncode

    def is_alive(self, pid: int) -> bool:
        process = self._children.get(pid)
        if process is not None:
            return process.poll() is None
        return pid_exists(pid)

    def kill(self, pid: int, sig: int = KILL_SIGNAL) -> bool:
        """Signal pid's process group. Returns False when the process is gone."""
        if not self.is_alive(pid):
            return False
        try:
            os.killpg(pid, sig)
        except ProcessLookupError:
            # Not a group leader; fall back to the single process.
            try:
                os.kill(pid, sig)
            except ProcessLookupError:
                return False
        except PermissionError:
            logger.warning("Not permitted to signal process group %s", pid)
            return False
        logger.info("Sent signal %s to pid=%s", sig, pid)
        return True
