"""Verb implementations over the shared registry."""

from __future__ import annotations

import json
import logging

from uniqproc.agent.models import (
    AddRequest,
    AliveRequest,
    ExecuteRequest,
    KillRequest,
    ListRequest,
    RemoveRequest,
    Request,
    RestartRequest,
)
from uniqproc.agent.process_manager import ProcessManager
from uniqproc.agent.registry import Registry
from uniqproc.contracts import ALIVE_RESPONSE
from uniqproc.errors import PersistenceError, SpawnError

logger = logging.getLogger("uniqproc.agent.handler")


class RequestHandler:
    """Turns one decoded request into one response line.

    Registry access is confined to short critical sections; waiting for a
    spawned child always happens with the lock released.
    """

    def __init__(self, registry: Registry, processes: ProcessManager | None = None) -> None:
        self.registry = registry
        self.processes = processes or ProcessManager()

    async def handle(self, request: Request) -> str:
        if isinstance(request, AliveRequest):
            return ALIVE_RESPONSE
        if isinstance(request, AddRequest):
            return await self.add(request.name, request.command)
        if isinstance(request, RemoveRequest):
            return await self.remove(request.name)
        if isinstance(request, ListRequest):
            return await self.list_commands()
        if isinstance(request, ExecuteRequest):
            return await self.execute(request.name)
        if isinstance(request, KillRequest):
            return await self.kill(request.name)
        if isinstance(request, RestartRequest):
            return await self.restart(request.name)
        return await self.toggle(request.name)

    async def add(self, name: str, command: str) -> str:
        async with self.registry.locked() as state:
            state.commands[name] = command
            self.registry.persist(state, include_commands=True)
            stored = state.commands[name]
        logger.info("Added %s", name)
        return f"Added: {stored}"

    async def remove(self, name: str) -> str:
        async with self.registry.locked() as state:
            state.commands.pop(name, None)
            self.registry.persist(state, include_commands=True)
        logger.info("Removed %s", name)
        return f"Removed {name}"

    async def list_commands(self) -> str:
        async with self.registry.locked() as state:
            commands = dict(state.commands)
        return json.dumps(commands, sort_keys=True)

    async def execute(self, name: str) -> str:
        async with self.registry.locked() as state:
            if name in state.running:
                return f"{name} is already running"
            command = state.commands.get(name)
        if command is None:
            return f"{name} is not registered"

        try:
            pid = self.processes.spawn(command)
        except SpawnError as exc:
            logger.error("Failed to execute %s: %s", name, exc)
            return f"Failed to execute {name}: {exc}"

        async with self.registry.locked() as state:
            state.running[name] = pid
            try:
                self.registry.persist(state)
            except PersistenceError as exc:
                # The entry must still be cleared once the child exits.
                logger.error("Could not persist start of %s (pid=%s): %s", name, pid, exc)

        await self.processes.wait(pid)

        async with self.registry.locked() as state:
            current = state.running.get(name)
            if current == pid:
                del state.running[name]
                self.registry.persist(state)
                return f"{name} executed successfully"
        if current is None:
            return f"{name} executed successfully, but was killed before it finished"
        logger.info("%s finished as pid=%s while pid=%s holds the name", name, pid, current)
        return f"{name} executed successfully, but was replaced by a concurrent run"

    async def kill(self, name: str) -> str:
        async with self.registry.locked() as state:
            pid = state.running.get(name)
            if pid is None:
                return f"{name} was not running via uniq-proc"
            if not self.processes.kill(pid):
                logger.warning("Process %s for %s not found", pid, name)
                return f"Failed to find process {pid} for {name}"
            del state.running[name]
            self.registry.persist(state)
        logger.info("Killed %s (pid=%s)", name, pid)
        return f"Successfully killed {name}"

    async def toggle(self, name: str) -> str:
        async with self.registry.locked() as state:
            is_running = name in state.running
        if is_running:
            return await self.kill(name)
        return await self.execute(name)

    async def restart(self, name: str) -> str:
        killed = await self.kill(name)
        executed = await self.execute(name)
        return f"{killed}\n{executed}"
