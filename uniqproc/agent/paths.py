"""Filesystem locations used by the agent and its clients."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir, user_log_dir

from uniqproc.contracts import APP_NAME

SOCKET_FILENAME = "uniq-proc.sock"
STATE_FILENAME = "uniq-proc.state"
CONFIG_FILENAME = "config.json"
LOG_FILENAME = "agent.log"
OUTPUT_FILENAME = "output.log"
LOCK_SUFFIX = ".lock"


def _env_path(name: str) -> Path | None:
    value = str(os.getenv(name, "")).strip()
    if not value:
        return None
    return Path(value).expanduser()


@dataclass(frozen=True)
class AgentPaths:
    """Channel endpoint, command store, runtime snapshot and log locations."""

    socket_path: Path
    config_path: Path
    state_path: Path
    log_dir: Path

    @property
    def lock_path(self) -> Path:
        return self.socket_path.with_name(self.socket_path.name + LOCK_SUFFIX)

    @property
    def log_file(self) -> Path:
        return self.log_dir / LOG_FILENAME

    @property
    def output_file(self) -> Path:
        return self.log_dir / OUTPUT_FILENAME

    @classmethod
    def from_env(cls) -> "AgentPaths":
        """Resolve default locations, honoring UNIQ_PROC_* overrides."""
        tmp_dir = Path(tempfile.gettempdir())
        config_dir = _env_path("UNIQ_PROC_CONFIG_DIR") or Path(user_config_dir(APP_NAME))
        return cls(
            socket_path=_env_path("UNIQ_PROC_SOCKET") or tmp_dir / SOCKET_FILENAME,
            config_path=config_dir / CONFIG_FILENAME,
            state_path=_env_path("UNIQ_PROC_STATE_PATH") or tmp_dir / STATE_FILENAME,
            log_dir=_env_path("UNIQ_PROC_LOG_DIR") or Path(user_log_dir(APP_NAME)),
        )

    @classmethod
    def under(cls, root: Path) -> "AgentPaths":
        """Place every location below one directory."""
        return cls(
            socket_path=root / SOCKET_FILENAME,
            config_path=root / "config" / CONFIG_FILENAME,
            state_path=root / STATE_FILENAME,
            log_dir=root / "logs",
        )
