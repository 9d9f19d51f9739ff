"""Agent and client exception hierarchy."""


class UniqProcError(Exception):
    """Base error type for all agent/client failures."""


class RequestDecodeError(UniqProcError):
    """Request payload could not be decoded into a known verb."""


class SpawnError(UniqProcError):
    """Shell command could not be started."""


class PersistenceError(UniqProcError):
    """Registry state could not be read from or written to disk."""


class ChannelBindError(UniqProcError):
    """Agent could not bind its channel endpoint."""


class ChannelCleanupError(UniqProcError):
    """Agent could not remove its channel endpoint on shutdown."""


class AgentAlreadyRunningError(UniqProcError):
    """Another live agent already answers on the channel endpoint."""

    def __init__(self, socket_path: str):
        super().__init__(f"agent already running on {socket_path}")
        self.socket_path = socket_path


class AgentStartTimeoutError(UniqProcError):
    """Auto-launched agent never answered the liveness probe."""
