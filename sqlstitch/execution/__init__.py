from sqlstitch.execution.base import Connection
from sqlstitch.execution.connection import ConnectionSettings
from sqlstitch.execution.observability import (
    ExecutionEvent,
    InMemoryMetricsAdapter,
    MetricPoint,
    ObservabilitySettings,
    QueryObservation,
    compose_event_observers,
    execution_event_to_dict,
    make_json_event_logger,
)
from sqlstitch.execution.postgres import PostgresConnection
from sqlstitch.execution.query import BoundQuery, QueryResult, bind_query

__all__ = [
    "Connection",
    "PostgresConnection",
    "BoundQuery",
    "QueryResult",
    "bind_query",
    "ConnectionSettings",
    "ObservabilitySettings",
    "QueryObservation",
    "ExecutionEvent",
    "InMemoryMetricsAdapter",
    "MetricPoint",
    "compose_event_observers",
    "execution_event_to_dict",
    "make_json_event_logger",
]
