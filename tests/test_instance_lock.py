"""Tests for the single-agent lock."""

import tempfile
import unittest
from pathlib import Path

from uniqproc.agent.instance_lock import AgentLock


class AgentLockTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.lock_path = Path(self._tmpdir.name) / "run" / "uniq-proc.sock.lock"

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def test_second_holder_is_refused_until_release(self) -> None:
        first = AgentLock(self.lock_path)
        second = AgentLock(self.lock_path)
        self.assertTrue(first.acquire())
        self.assertFalse(second.acquire())
        self.assertFalse(second.held)
        first.release()
        self.assertTrue(second.acquire())
        second.release()

    def test_release_without_acquire_is_noop(self) -> None:
        lock = AgentLock(self.lock_path)
        lock.release()
        self.assertFalse(lock.held)

    def test_acquire_is_idempotent_for_holder(self) -> None:
        lock = AgentLock(self.lock_path)
        self.assertTrue(lock.acquire())
        self.assertTrue(lock.acquire())
        self.assertTrue(self.lock_path.exists())
        lock.release()


if __name__ == "__main__":
    unittest.main()
