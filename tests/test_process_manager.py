"""Tests for spawning, waiting for and killing shell commands."""

import asyncio
import os
import unittest

from uniqproc.agent.process_manager import ProcessManager, pid_exists


class ProcessManagerTests(unittest.IsolatedAsyncioTestCase):
    """Validate the spawn/wait/kill contract against real shell children."""

    async def test_spawn_returns_immediately_and_wait_reports_exit_code(self) -> None:
        manager = ProcessManager(poll_interval=0.01)
        pid = manager.spawn("exit 3")
        self.assertGreater(pid, 0)
        self.assertEqual(await manager.wait(pid), 3)

    async def test_kill_running_child(self) -> None:
        manager = ProcessManager(poll_interval=0.01)
        pid = manager.spawn("sleep 5")
        self.assertTrue(manager.is_alive(pid))
        self.assertTrue(manager.kill(pid))
        exit_code = await asyncio.wait_for(manager.wait(pid), timeout=2)
        self.assertNotEqual(exit_code, 0)
        self.assertFalse(pid_exists(pid))

    async def test_kill_exited_child_is_not_found(self) -> None:
        manager = ProcessManager(poll_interval=0.01)
        pid = manager.spawn("true")
        await manager.wait(pid)
        self.assertFalse(manager.is_alive(pid))
        self.assertFalse(manager.kill(pid))

    async def test_wait_does_not_block_event_loop(self) -> None:
        manager = ProcessManager(poll_interval=0.01)
        pid = manager.spawn("sleep 0.3")
        waiter = asyncio.create_task(manager.wait(pid))
        loop = asyncio.get_running_loop()
        started = loop.time()
        await asyncio.sleep(0.02)
        self.assertLess(loop.time() - started, 0.2)
        self.assertFalse(waiter.done())
        self.assertEqual(await waiter, 0)

    async def test_wait_rejects_foreign_pid(self) -> None:
        manager = ProcessManager()
        with self.assertRaises(KeyError):
            await manager.wait(os.getpid())


class PidExistsTests(unittest.TestCase):
    def test_own_pid_exists(self) -> None:
        self.assertTrue(pid_exists(os.getpid()))

    def test_non_positive_pid_does_not_exist(self) -> None:
        self.assertFalse(pid_exists(0))
        self.assertFalse(pid_exists(-1))


if __name__ == "__main__":
    unittest.main()
