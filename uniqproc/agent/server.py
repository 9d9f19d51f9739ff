"""Unix-socket request server for the agent."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from uniqproc.agent.handler import RequestHandler
from uniqproc.agent.models import decode_request
from uniqproc.contracts import PARSE_FAILURE_RESPONSE
from uniqproc.errors import ChannelBindError, RequestDecodeError, UniqProcError

logger = logging.getLogger("uniqproc.agent.server")

READ_TIMEOUT_SECONDS = 0.16
READ_CHUNK_BYTES = 64 * 1024


async def read_payload(reader: asyncio.StreamReader, timeout: float = READ_TIMEOUT_SECONDS) -> bytes:
    """Read until EOF or until the timeout expires, returning what arrived."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    chunks: list[bytes] = []
    while True:
        remaining = deadline - loop.time()
        if remaining <= 0:
            break
        try:
            chunk = await asyncio.wait_for(reader.read(READ_CHUNK_BYTES), timeout=remaining)
        except asyncio.TimeoutError:
            break
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


class AgentServer:
    """Accepts one request per connection and answers it on its own task."""

    def __init__(
        self,
        handler: RequestHandler,
        socket_path: Path,
        read_timeout: float = READ_TIMEOUT_SECONDS,
    ) -> None:
        self.handler = handler
        self.socket_path = socket_path
        self.read_timeout = read_timeout
        self._server: asyncio.AbstractServer | None = None
        self._connections: set[asyncio.Task] = set()

    async def _respond(self, raw: bytes) -> str:
        try:
            request = decode_request(raw)
        except RequestDecodeError as exc:
            logger.warning("Undecodable request (%d bytes): %s", len(raw), exc)
            return PARSE_FAILURE_RESPONSE
        try:
            return await self.handler.handle(request)
        except UniqProcError as exc:
            logger.error("Request %s failed: %s", request.verb, exc)
            return f"Failed to handle {request.verb}: {exc}"

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._connections.add(task)
        try:
            raw = await read_payload(reader, self.read_timeout)
            response = await self._respond(raw)
            writer.write(response.encode("utf-8"))
            await writer.drain()
        except (ConnectionError, BrokenPipeError) as exc:
            logger.info("Client went away before the response was written: %s", exc)
        finally:
            writer.close()
            self._connections.discard(task)

    async def start(self) -> None:
        """Bind the channel endpoint and start accepting connections."""
        self.socket_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._server = await asyncio.start_unix_server(
                self._handle_connection, path=str(self.socket_path)
            )
        except OSError as exc:
            raise ChannelBindError(f"cannot bind {self.socket_path}: {exc}") from exc
        logger.info("Agent listening on %s", self.socket_path)

    def stop(self) -> None:
        """Stop accepting new connections. In-flight connections keep running."""
        if self._server is not None:
            self._server.close()
            self._server = None
            logger.info("Agent stopped accepting on %s", self.socket_path)

    async def wait_connections(self) -> None:
        """Wait for every in-flight connection to write its response."""
        pending = list(self._connections)
        if not pending:
            return
        logger.info("Waiting for %d in-flight requests", len(pending))
        await asyncio.gather(*pending, return_exceptions=True)
