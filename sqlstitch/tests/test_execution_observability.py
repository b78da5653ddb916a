import asyncio
import json
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from sqlstitch.errors import RowValidationError
from sqlstitch.execution.observability import (
    ExecutionEvent,
    InMemoryMetricsAdapter,
    ObservabilitySettings,
    QueryObservation,
    compose_event_observers,
    execution_event_to_dict,
    make_json_event_logger,
)
from sqlstitch.fragments.builder import a, sql


def _client(rows: list[dict] | None = None) -> MagicMock:
    conn = MagicMock()
    conn.execute_statement = AsyncMock(return_value=rows or [])
    return conn


def test_query_observer_receives_success_observation() -> None:
    observations: list[QueryObservation] = []
    query = sql("SELECT * FROM t WHERE id = {}", a("id")).query(
        _client([{"id": 1}]),
        observability_settings=ObservabilitySettings(
            query_observer=observations.append,
            metadata={"service": "unit-test"},
        ),
    )

    asyncio.run(query({"id": 1}))

    assert len(observations) == 1
    observation = observations[0]
    assert observation.statement_name == query.name
    assert observation.sql == "SELECT * FROM t WHERE id = $1"
    assert observation.param_count == 1
    assert observation.row_count == 1
    assert observation.succeeded is True
    assert observation.duration_ms >= 0
    assert observation.metadata["service"] == "unit-test"
    assert observation.error_type is None


def test_query_observer_receives_failure_observation() -> None:
    observations: list[QueryObservation] = []
    client = _client()
    client.execute_statement.side_effect = RuntimeError("relation \"missing\" does not exist")
    query = sql("SELECT * FROM missing").query(
        client,
        observability_settings=ObservabilitySettings(query_observer=observations.append),
    )

    with pytest.raises(RuntimeError):
        asyncio.run(query())

    assert len(observations) == 1
    assert observations[0].succeeded is False
    assert observations[0].row_count is None
    assert observations[0].error_type == "RuntimeError"
    assert "missing" in (observations[0].error_message or "")


def test_event_observer_receives_start_and_end() -> None:
    events: list[ExecutionEvent] = []
    query = sql("SELECT {}", 1).query(
        _client(),
        observability_settings=ObservabilitySettings(event_observer=events.append),
    )

    asyncio.run(query())

    assert [event.event for event in events] == ["query.start", "query.end"]
    assert events[0].query_id == events[1].query_id
    assert all(event.statement_name == query.name for event in events)
    assert events[1].success is True
    assert events[1].param_count == 1
    assert events[1].duration_ms is not None


def test_no_observer_means_no_reporting() -> None:
    query = sql("SELECT 1").query(_client(), observability_settings=ObservabilitySettings())
    assert asyncio.run(query()).rows == []


def test_metrics_adapter_counts_row_validation_failures() -> None:
    metrics = InMemoryMetricsAdapter()
    query = sql("SELECT id FROM t").query(
        _client([{"id": None}]),
        validate=lambda row: row["id"] is not None,
        observability_settings=ObservabilitySettings(event_observer=metrics),
    )

    asyncio.run(sql("SELECT 1").query(_client(), observability_settings=ObservabilitySettings(event_observer=metrics))())
    with pytest.raises(RowValidationError):
        asyncio.run(query())

    ok_labels = {"source": "BoundQuery", "event": "query.end", "error_type": "none"}
    failed_labels = {"source": "BoundQuery", "event": "query.end", "error_type": "RowValidationError"}
    assert metrics.counter_value("sqlstitch_queries_total", ok_labels) == 1
    assert metrics.counter_value("sqlstitch_queries_total", failed_labels) == 1
    assert metrics.counter_value("sqlstitch_query_failures_total", failed_labels) == 1
    assert metrics.counter_value("sqlstitch_row_validation_failures_total", failed_labels) == 1
    assert len(metrics.histogram_values("sqlstitch_query_duration_ms", ok_labels)) == 1
    assert {point.name for point in metrics.counters()} == {
        "sqlstitch_queries_total",
        "sqlstitch_query_failures_total",
        "sqlstitch_row_validation_failures_total",
    }
    assert len(metrics.histograms()) == 2


def test_json_event_logger_writes_one_line_per_event(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("sqlstitch.tests.events")
    seen: list[ExecutionEvent] = []
    observer = compose_event_observers(make_json_event_logger(logger=logger), seen.append)
    query = sql("SELECT 1").query(
        _client(),
        observability_settings=ObservabilitySettings(event_observer=observer, metadata={"env": "test"}),
    )

    with caplog.at_level(logging.INFO, logger="sqlstitch.tests.events"):
        asyncio.run(query())

    assert len(seen) == 2
    payloads = [json.loads(record.getMessage()) for record in caplog.records]
    assert [payload["event"] for payload in payloads] == ["query.start", "query.end"]
    assert payloads[1]["metadata"] == {"env": "test"}
    assert payloads[1] == execution_event_to_dict(seen[1])
