"""Agent startup, signal-driven stop and shutdown persistence."""

from __future__ import annotations

import asyncio
import logging
import signal

from uniqproc.agent.handler import RequestHandler
from uniqproc.agent.instance_lock import AgentLock
from uniqproc.agent.paths import AgentPaths
from uniqproc.agent.process_manager import ProcessManager
from uniqproc.agent.registry import Registry
from uniqproc.agent.server import AgentServer
from uniqproc.agent.state_store import StateStore
from uniqproc.client import probe_agent
from uniqproc.errors import AgentAlreadyRunningError, ChannelCleanupError

logger = logging.getLogger("uniqproc.agent.lifecycle")

STOP_POLL_SECONDS = 0.16
STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class AgentLifecycle:
    """Owns one agent run: probe, load, bind, serve until stopped, persist, clean up."""

    def __init__(
        self,
        paths: AgentPaths,
        *,
        keep: bool = False,
        install_signal_handlers: bool = True,
    ) -> None:
        self.paths = paths
        self.keep = keep
        self.install_signal_handlers = install_signal_handlers
        self.store = StateStore(paths)
        self.lock = AgentLock(paths.lock_path)
        self.registry: Registry | None = None
        self._stop_event = asyncio.Event()
        self._started = asyncio.Event()

    def request_stop(self) -> None:
        self._stop_event.set()

    async def wait_started(self) -> None:
        await self._started.wait()

    def _install_signals(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in STOP_SIGNALS:
            loop.add_signal_handler(sig, self._on_signal, sig)

    def _remove_signals(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in STOP_SIGNALS:
            loop.remove_signal_handler(sig)

    def _on_signal(self, sig: int) -> None:
        logger.info("Received signal %s, stopping agent", sig)
        self.request_stop()

    async def run(self) -> None:
        socket_path = self.paths.socket_path
        if not self.lock.acquire():
            raise AgentAlreadyRunningError(str(socket_path))
        try:
            await self._serve()
        finally:
            self.lock.release()

    async def _serve(self) -> None:
        socket_path = self.paths.socket_path
        if await asyncio.to_thread(probe_agent, socket_path):
            raise AgentAlreadyRunningError(str(socket_path))

        self.registry = self.store.load_registry(keep=self.keep)
        handler = RequestHandler(self.registry, ProcessManager())
        server = AgentServer(handler, socket_path)

        # Stale endpoint from an unclean exit.
        socket_path.unlink(missing_ok=True)
        await server.start()

        loop = asyncio.get_running_loop()
        if self.install_signal_handlers:
            self._install_signals(loop)
        self._started.set()
        try:
            while not self._stop_event.is_set():
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=STOP_POLL_SECONDS)
                except asyncio.TimeoutError:
                    continue
        finally:
            if self.install_signal_handlers:
                self._remove_signals(loop)
            server.stop()
            await server.wait_connections()
            await self._shutdown()

    async def _shutdown(self) -> None:
        snapshot = await self.registry.snapshot()
        self.store.save_snapshot(snapshot)
        logger.info(
            "Persisted %d commands and %d running entries", len(snapshot.commands), len(snapshot.running)
        )
        try:
            self.paths.socket_path.unlink(missing_ok=True)
        except OSError as exc:
            raise ChannelCleanupError(f"cannot remove {self.paths.socket_path}: {exc}") from exc
        logger.info("Agent shut down")
