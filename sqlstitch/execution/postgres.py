import inspect
import time
from collections.abc import Mapping
from typing import Any, Sequence

from sqlstitch.execution.connection import ConnectionAcquireHook, ConnectionReleaseHook, ConnectionSettings
from sqlstitch.execution.observability import ObservabilitySettings, emit_event
from sqlstitch.types import Value

# ==================================================
# PostgreSQL Connection
# ==================================================


class PostgresConnection:
    """
    Runs linearized statements on PostgreSQL using the 'psycopg' library.

    Statements go through a raw cursor so the ``$n`` placeholders are sent to
    the server untouched, and are always executed as prepared statements.
    """

    def __init__(
        self,
        connection_info: str | dict[str, Any] | None = None,
        connection: Any | None = None,
        connect_timeout_seconds: float | None = None,
        acquire_connection: ConnectionAcquireHook | None = None,
        release_connection: ConnectionReleaseHook | None = None,
        row_factory: Any | None = None,
        observability_settings: ObservabilitySettings | None = None,
    ) -> None:
        """
        Initializes the adapter with connection information, an existing connection or a pool hook.

        Args:
            connection_info: A connection string or a dictionary of parameters.
            connection: An existing psycopg AsyncConnection, left open after use.
            connect_timeout_seconds: Timeout for connections opened from connection_info.
            acquire_connection: Hook returning a connection (or an awaitable of one) per statement.
            release_connection: Hook receiving connections obtained from acquire_connection.
            row_factory: psycopg row factory, defaults to dict rows.
            observability_settings: Hooks notified about connection lifecycle events.
        """
        if connection_info is None and connection is None and acquire_connection is None:
            raise ValueError("Provide connection_info, connection, or acquire_connection.")

        self.connection_info = connection_info
        self.connection = connection
        self.connection_settings = ConnectionSettings(
            connect_timeout_seconds=connect_timeout_seconds,
            acquire_connection=acquire_connection,
            release_connection=release_connection,
        )
        self.row_factory = row_factory
        self.observability_settings = observability_settings
        self.prepared_statements: set[str] = set()
        self._psycopg = None
        self._closed = False

    def _get_psycopg(self) -> Any:
        """
        Lazily imports psycopg and returns the module.
        """
        if self._psycopg is None:
            try:
                import psycopg
                import psycopg.rows
                import psycopg.types.json
                self._psycopg = psycopg
            except ImportError:
                raise ImportError(
                    "The 'psycopg' library is required for PostgresConnection. "
                    "Install it with 'pip install psycopg[binary]'."
                )
        return self._psycopg

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Connection adapter is closed.")

    def _emit_event(self, event: str, *, success: bool, **kwargs: Any) -> None:
        emit_event(
            self.observability_settings,
            event,
            source=self.__class__.__name__,
            success=success,
            **kwargs,
        )

    def _adapt_values(self, values: Sequence[Value]) -> list[Any]:
        """
        Wraps mappings, also inside lists, in psycopg's Jsonb so they bind as jsonb.
        """
        jsonb = self._get_psycopg().types.json.Jsonb

        def _adapt(value: Any) -> Any:
            if isinstance(value, Mapping):
                return jsonb(dict(value))
            if isinstance(value, (list, tuple)):
                return [_adapt(item) for item in value]
            return value

        return [_adapt(value) for value in values]

    async def _connect(self) -> Any:
        psycopg = self._get_psycopg()
        options: dict[str, Any] = {}
        timeout = self.connection_settings.connect_timeout_seconds
        if timeout is not None:
            options["connect_timeout"] = max(1, int(timeout))
        if isinstance(self.connection_info, dict):
            return await psycopg.AsyncConnection.connect(**self.connection_info, **options)
        return await psycopg.AsyncConnection.connect(self.connection_info or "", **options)

    async def _get_connection_for_query(self) -> tuple[Any, str | None]:
        self._ensure_open()
        if self.connection is not None:
            return self.connection, None

        self._emit_event("connection.acquire.start", success=True)
        started = time.perf_counter()
        if self.connection_settings.acquire_connection is not None:
            conn = self.connection_settings.acquire_connection()
            if inspect.isawaitable(conn):
                conn = await conn
            mode = "release"
        else:
            conn = await self._connect()
            mode = "close"
        self._emit_event(
            "connection.acquire.end",
            success=True,
            connection_id=str(id(conn)),
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        return conn, mode

    async def _release_connection(self, conn: Any, mode: str | None) -> None:
        if mode is None:
            return
        if mode == "release" and self.connection_settings.release_connection is not None:
            self._emit_event("connection.release", success=True, connection_id=str(id(conn)))
            released = self.connection_settings.release_connection(conn)
            if inspect.isawaitable(released):
                await released
            return
        self._emit_event("connection.close", success=True, connection_id=str(id(conn)))
        await conn.close()

    async def execute_statement(self, name: str, sql: str, values: Sequence[Value]) -> Sequence[Any]:
        """
        Executes a statement with ``$n`` placeholders and returns its rows.
        Statements without a result set return an empty list.
        """
        psycopg = self._get_psycopg()
        conn, release_mode = await self._get_connection_for_query()
        try:
            row_factory = self.row_factory or psycopg.rows.dict_row
            async with psycopg.AsyncRawCursor(conn, row_factory=row_factory) as cur:
                await cur.execute(sql, self._adapt_values(values), prepare=True)
                rows = await cur.fetchall() if cur.description else []
            self.prepared_statements.add(name)
            if release_mode is not None and getattr(conn, "autocommit", False) is False:
                await conn.commit()
            return rows
        finally:
            await self._release_connection(conn, release_mode)

    # ==================================================
    # Lifecycle Controls
    # ==================================================

    async def close(self) -> None:
        """
        Marks the adapter closed. A connection passed in by the caller stays open.
        """
        self._closed = True
        self.prepared_statements.clear()

    async def __aenter__(self) -> "PostgresConnection":
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        _ = exc_type
        _ = exc
        _ = tb
        await self.close()
