from dataclasses import dataclass
from typing import Any, Callable

# ==================================================
# Connection Management Types
# ==================================================

# May return the connection or an awaitable resolving to it.
ConnectionAcquireHook = Callable[[], Any]
ConnectionReleaseHook = Callable[[Any], Any]


@dataclass(frozen=True)
class ConnectionSettings:
    """
    Connection settings for PostgresConnection.
    """

    connect_timeout_seconds: float | None = None
    acquire_connection: ConnectionAcquireHook | None = None
    release_connection: ConnectionReleaseHook | None = None
