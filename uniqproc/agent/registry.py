"""In-memory name->command and name->pid registry owned by the agent."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable

from uniqproc.agent.models import RegistrySnapshot


@dataclass
class RegistryState:
    """Mutable registry maps. Only reachable while the registry lock is held."""

    commands: dict[str, str] = field(default_factory=dict)
    running: dict[str, int] = field(default_factory=dict)

    def snapshot(self) -> RegistrySnapshot:
        return RegistrySnapshot(commands=dict(self.commands), running=dict(self.running))


class Registry:
    """Registry state behind a single exclusive lock.

    Every read and write goes through `locked()`. The optional `on_persist`
    callback receives a copy of the state and is invoked by `persist()`,
    which callers use after each mutation while still holding the lock.
    """

    def __init__(
        self,
        state: RegistryState | None = None,
        *,
        on_persist: Callable[[RegistrySnapshot, bool], None] | None = None,
    ) -> None:
        self._state = state or RegistryState()
        self._lock = asyncio.Lock()
        self._on_persist = on_persist

    @asynccontextmanager
    async def locked(self) -> AsyncIterator[RegistryState]:
        async with self._lock:
            yield self._state

    def persist(self, state: RegistryState, *, include_commands: bool = False) -> None:
        """Flush state through the persistence callback.

        Must be called from inside `locked()`. `include_commands` also
        rewrites the durable command-definition store.
        """
        if state is not self._state:
            raise ValueError("persist() requires the locked registry state")
        if self._on_persist is not None:
            self._on_persist(state.snapshot(), include_commands)

    async def snapshot(self) -> RegistrySnapshot:
        async with self.locked() as state:
            return state.snapshot()
