from __future__ import annotations

from dataclasses import dataclass, field
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Generic, Sequence
from uuid import uuid4

from sqlstitch.compiler.compiled_query import CompiledQuery
from sqlstitch.errors import RowValidationError
from sqlstitch.execution.base import Connection
from sqlstitch.execution.observability import ObservabilitySettings, QueryObservation, emit_event
from sqlstitch.execution.postgres import PostgresConnection
from sqlstitch.types import A, Row, Value

if TYPE_CHECKING:
    from sqlstitch.fragments.models import Fragment

RowValidator = Callable[[Any], bool]


@dataclass
class QueryResult(Generic[Row]):
    rows: list[Row] = field(default_factory=list)


# ==================================================
# Bound Query
# ==================================================


class BoundQuery(Generic[A, Row]):
    """
    A fragment linearized once and bound to a connection.

    Every call maps the cached accessors over the supplied argument and runs
    the statement under the same name, so the connection can keep it prepared.
    """

    def __init__(
        self,
        fragment: Fragment[A],
        connection: Connection,
        *,
        validate: RowValidator | None = None,
        observability_settings: ObservabilitySettings | None = None,
        offset: int = 1,
    ) -> None:
        self.connection = connection
        self.validate = validate
        self.observability_settings = observability_settings
        self.compiled: CompiledQuery[A] = fragment.compile(offset)
        self.name = str(uuid4())

    @property
    def sql(self) -> str:
        return self.compiled.sql

    def bind(self, args: A | None = None) -> list[Value]:
        """
        Builds the values for $1 .. $n from an argument. ``None`` stands for an empty mapping.
        """
        return self.compiled.bind({} if args is None else args)  # type: ignore[arg-type]

    async def __call__(self, args: A | None = None) -> QueryResult[Row]:
        values = self.bind(args)
        return await self._observe_query(values, lambda: self._execute(values))

    async def _execute(self, values: list[Value]) -> QueryResult[Row]:
        rows = await self.connection.execute_statement(self.name, self.compiled.sql, values)
        if self.validate is not None:
            for index, row in enumerate(rows):
                if not self.validate(row):
                    raise RowValidationError(index, row)
        return QueryResult(rows=list(rows))

    async def _observe_query(
        self,
        values: Sequence[Value],
        run: Callable[[], Awaitable[QueryResult[Row]]],
    ) -> QueryResult[Row]:
        settings = self.observability_settings
        if settings is None:
            return await run()

        query_id = uuid4().hex
        emit_event(
            settings,
            "query.start",
            source=self.__class__.__name__,
            success=True,
            query_id=query_id,
            statement_name=self.name,
            param_count=len(values),
        )

        started = time.perf_counter()
        error: Exception | None = None
        result: QueryResult[Row] | None = None
        try:
            result = await run()
            return result
        except Exception as exc:
            error = exc
            raise
        finally:
            duration_ms = (time.perf_counter() - started) * 1000
            row_count = len(result.rows) if result is not None else None
            if settings.query_observer is not None:
                settings.query_observer(
                    QueryObservation(
                        statement_name=self.name,
                        sql=self.compiled.sql,
                        param_count=len(values),
                        duration_ms=duration_ms,
                        succeeded=error is None,
                        row_count=row_count,
                        metadata=dict(settings.metadata),
                        error_type=type(error).__name__ if error is not None else None,
                        error_message=str(error) if error is not None else None,
                    )
                )
            emit_event(
                settings,
                "query.end",
                source=self.__class__.__name__,
                success=error is None,
                query_id=query_id,
                statement_name=self.name,
                duration_ms=duration_ms,
                param_count=len(values),
                row_count=row_count,
                error_type=type(error).__name__ if error is not None else None,
                error_message=str(error) if error is not None else None,
            )


def bind_query(
    fragment: Fragment[A],
    connection: Any,
    *,
    validate: RowValidator | None = None,
    observability_settings: ObservabilitySettings | None = None,
    offset: int = 1,
) -> BoundQuery[A, Any]:
    """
    Binds a fragment to a connection.
    Objects that do not implement ``Connection`` are treated as psycopg connections.
    """
    if not isinstance(connection, Connection):
        connection = PostgresConnection(connection=connection)
    return BoundQuery(
        fragment,
        connection,
        validate=validate,
        observability_settings=observability_settings,
        offset=offset,
    )
