from sqlstitch.compiler.compiled_query import CompiledQuery
from sqlstitch.errors import (
    ArgumentBindingError,
    InvalidUsageError,
    RowValidationError,
    SqlStitchError,
)
from sqlstitch.execution import (
    BoundQuery,
    Connection,
    ConnectionSettings,
    ExecutionEvent,
    InMemoryMetricsAdapter,
    ObservabilitySettings,
    PostgresConnection,
    QueryObservation,
    QueryResult,
    bind_query,
    compose_event_observers,
    make_json_event_logger,
)
from sqlstitch.fragments import (
    ArgumentFragment,
    Builder,
    EscapedStringFragment,
    Fragment,
    IdentifierFragment,
    LiteralFragment,
    QueryFragment,
    TextFragment,
    ValueFragment,
    a,
    arg,
    i,
    ident,
    join,
    l,
    literal,
    raw,
    sql,
    string,
)

__version__ = "0.3.0"

__all__ = [
    "__version__",
    "sql",
    "Builder",
    "ident",
    "literal",
    "arg",
    "string",
    "raw",
    "join",
    "i",
    "l",
    "a",
    "Fragment",
    "TextFragment",
    "EscapedStringFragment",
    "LiteralFragment",
    "IdentifierFragment",
    "ValueFragment",
    "ArgumentFragment",
    "QueryFragment",
    "CompiledQuery",
    "BoundQuery",
    "QueryResult",
    "bind_query",
    "Connection",
    "PostgresConnection",
    "ConnectionSettings",
    "ObservabilitySettings",
    "QueryObservation",
    "ExecutionEvent",
    "InMemoryMetricsAdapter",
    "compose_event_observers",
    "make_json_event_logger",
    "SqlStitchError",
    "InvalidUsageError",
    "ArgumentBindingError",
    "RowValidationError",
]
