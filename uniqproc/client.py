"""Client side of the agent protocol: probe, auto-launch and forward one request."""

from __future__ import annotations

import logging
import socket
import subprocess
import sys
import time
from pathlib import Path

from uniqproc.agent.models import AliveRequest, Request, encode_request
from uniqproc.agent.paths import AgentPaths
from uniqproc.contracts import ALIVE_RESPONSE, NOT_RUNNING_RESPONSE
from uniqproc.errors import AgentStartTimeoutError

logger = logging.getLogger("uniqproc.client")

PROBE_TIMEOUT_SECONDS = 0.5
AGENT_START_TIMEOUT_SECONDS = 5.0
AGENT_START_POLL_SECONDS = 0.02
RECV_CHUNK_BYTES = 64 * 1024


def send_request(request: Request, socket_path: Path, timeout: float | None = None) -> str:
    """Send one request and return the agent's full text response.

    `timeout=None` waits as long as the agent needs (execute blocks until the
    command exits). Connection and transport failures raise OSError.
    """
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
        sock.settimeout(timeout)
        sock.connect(str(socket_path))
        sock.sendall(encode_request(request))
        sock.shutdown(socket.SHUT_WR)
        chunks: list[bytes] = []
        while True:
            chunk = sock.recv(RECV_CHUNK_BYTES)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks).decode("utf-8", errors="replace")


def probe_agent(socket_path: Path, timeout: float = PROBE_TIMEOUT_SECONDS) -> bool:
    """Liveness probe. A stale or unconnectable endpoint counts as not running."""
    try:
        return send_request(AliveRequest(), socket_path, timeout=timeout) == ALIVE_RESPONSE
    except OSError:
        return False


def launch_agent(paths: AgentPaths, keep: bool = False) -> subprocess.Popen:
    """Start a detached agent whose stdio, and its children's, go to the output file."""
    paths.log_dir.mkdir(parents=True, exist_ok=True)
    cmd = [sys.executable, "-m", "uniqproc.cli"]
    if keep:
        cmd.append("--keep")
    cmd.append("daemon")
    with open(paths.output_file, "a") as output_file:
        process = subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=output_file,
            stderr=output_file,
            start_new_session=True,
        )
    logger.info("Launched agent pid=%s", process.pid)
    return process


def ensure_agent(
    paths: AgentPaths,
    keep: bool = False,
    timeout: float = AGENT_START_TIMEOUT_SECONDS,
) -> bool:
    """Make sure an agent answers on the channel. Returns True if one was launched."""
    if probe_agent(paths.socket_path):
        return False
    process = launch_agent(paths, keep=keep)
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if probe_agent(paths.socket_path):
            return True
        if process.poll() is not None and not probe_agent(paths.socket_path):
            raise AgentStartTimeoutError(
                f"agent exited with code {process.returncode}; see {paths.log_file}"
            )
        time.sleep(AGENT_START_POLL_SECONDS)
    raise AgentStartTimeoutError(f"agent did not answer on {paths.socket_path} within {timeout}s")


def forward_request(request: Request, paths: AgentPaths, keep: bool = False) -> str:
    """Ensure the agent is up, then send request and return its response."""
    ensure_agent(paths, keep=keep)
    try:
        return send_request(request, paths.socket_path)
    except OSError as exc:
        if isinstance(request, AliveRequest):
            return NOT_RUNNING_RESPONSE
        return f"An error has occurred while getting the response: {exc}"
