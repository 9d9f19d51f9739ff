"""Durable command store and transient runtime snapshot persistence."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from uniqproc.agent.models import RegistrySnapshot
from uniqproc.agent.paths import AgentPaths
from uniqproc.agent.registry import Registry, RegistryState
from uniqproc.contracts import SUPPORTED_SNAPSHOT_SCHEMAS
from uniqproc.errors import PersistenceError

logger = logging.getLogger("uniqproc.agent.state_store")


def _write_atomic(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(path.name + ".tmp")
    temp_path.write_text(content, encoding="utf-8")
    temp_path.replace(path)


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise PersistenceError(f"cannot read {path}: {exc}") from exc


def read_snapshot(path: Path) -> RegistrySnapshot | None:
    """Read the runtime snapshot if present."""
    if not path.exists():
        return None
    raw = _read_json(path)
    try:
        snapshot = RegistrySnapshot.model_validate(raw)
    except ValidationError as exc:
        raise PersistenceError(f"invalid snapshot {path}: {exc}") from exc
    if snapshot.schema_version not in SUPPORTED_SNAPSHOT_SCHEMAS:
        raise PersistenceError(f"unsupported snapshot schema_version: {snapshot.schema_version}")
    return snapshot


def read_commands(path: Path) -> dict[str, str] | None:
    """Read the command-definition store if present."""
    if not path.exists():
        return None
    raw = _read_json(path)
    if not isinstance(raw, dict):
        raise PersistenceError(f"command store {path} must be an object")
    commands: dict[str, str] = {}
    for name, command in raw.items():
        if not isinstance(command, str):
            raise PersistenceError(f"command for {name!r} in {path} must be a string")
        commands[str(name)] = command
    return commands


class StateStore:
    """Reads and writes registry state at the configured locations."""

    def __init__(self, paths: AgentPaths) -> None:
        self.config_path = paths.config_path
        self.state_path = paths.state_path

    def load_state(self, keep: bool = False) -> RegistryState:
        """Build the startup registry state.

        With `keep`, `running` comes from the previous snapshot, and so do
        `commands` when no command store exists. An existing command store
        always wins for `commands`.
        """
        state = RegistryState()
        if keep:
            previous = read_snapshot(self.state_path)
            if previous is not None:
                state.commands = dict(previous.commands)
                state.running = dict(previous.running)
                logger.info(
                    "Recovered %d running entries from %s", len(state.running), self.state_path
                )
        commands = read_commands(self.config_path)
        if commands is not None:
            state.commands = commands
        return state

    def load_registry(self, keep: bool = False) -> Registry:
        return Registry(self.load_state(keep), on_persist=self.save)

    def save_snapshot(self, snapshot: RegistrySnapshot) -> None:
        try:
            _write_atomic(self.state_path, snapshot.model_dump_json(indent=2))
        except OSError as exc:
            raise PersistenceError(f"cannot write snapshot {self.state_path}: {exc}") from exc

    def save_commands(self, commands: dict[str, str]) -> None:
        try:
            _write_atomic(self.config_path, json.dumps(commands, indent=2, sort_keys=True))
        except OSError as exc:
            raise PersistenceError(f"cannot write command store {self.config_path}: {exc}") from exc

    def save(self, snapshot: RegistrySnapshot, include_commands: bool = False) -> None:
        """Persist the snapshot, and the command store when requested."""
        self.save_snapshot(snapshot)
        if include_commands:
            self.save_commands(snapshot.commands)
