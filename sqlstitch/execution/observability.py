from dataclasses import dataclass, field
from datetime import datetime, timezone
import json
import logging
from typing import Any, Callable, Mapping

# ==================================================
# Observability Types
# ==================================================

QueryObserveHook = Callable[["QueryObservation"], None]
EventObserveHook = Callable[["ExecutionEvent"], None]
LabelMap = Mapping[str, str]


@dataclass(frozen=True)
class ObservabilitySettings:
    """
    Hooks notified about query execution. Nothing is reported when no hook is set.
    """

    query_observer: QueryObserveHook | None = None
    event_observer: EventObserveHook | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class QueryObservation:
    """
    Structured query execution observation payload.
    """

    statement_name: str
    sql: str
    param_count: int
    duration_ms: float
    succeeded: bool
    row_count: int | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    error_type: str | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class ExecutionEvent:
    """
    Structured lifecycle event payload.
    """

    timestamp: str
    event: str
    source: str
    success: bool
    metadata: Mapping[str, Any] = field(default_factory=dict)
    query_id: str | None = None
    statement_name: str | None = None
    connection_id: str | None = None
    duration_ms: float | None = None
    param_count: int | None = None
    row_count: int | None = None
    error_type: str | None = None
    error_message: str | None = None


def emit_event(
    settings: ObservabilitySettings | None,
    event: str,
    *,
    source: str,
    success: bool,
    **kwargs: Any,
) -> None:
    """
    Sends an ExecutionEvent to the configured event observer, if any.
    """
    if settings is None or settings.event_observer is None:
        return
    settings.event_observer(
        ExecutionEvent(
            timestamp=datetime.now(timezone.utc).isoformat(),
            event=event,
            source=source,
            success=success,
            metadata=dict(settings.metadata),
            **kwargs,
        )
    )


def execution_event_to_dict(event: ExecutionEvent) -> dict[str, Any]:
    """
    Converts an ExecutionEvent dataclass into a JSON-safe dictionary.
    """

    return {
        "timestamp": event.timestamp,
        "event": event.event,
        "source": event.source,
        "success": event.success,
        "metadata": dict(event.metadata),
        "query_id": event.query_id,
        "statement_name": event.statement_name,
        "connection_id": event.connection_id,
        "duration_ms": event.duration_ms,
        "param_count": event.param_count,
        "row_count": event.row_count,
        "error_type": event.error_type,
        "error_message": event.error_message,
    }


def make_json_event_logger(
    *,
    logger: logging.Logger,
    level: int = logging.INFO,
) -> EventObserveHook:
    """
    Builds an EventObserveHook that emits one JSON log line per ExecutionEvent.
    """

    def _log_event(event: ExecutionEvent) -> None:
        payload = execution_event_to_dict(event)
        logger.log(level, json.dumps(payload, separators=(",", ":"), sort_keys=True, default=str))

    return _log_event


def compose_event_observers(*observers: EventObserveHook) -> EventObserveHook:
    """
    Composes multiple event observers into a single observer.
    """

    def _composed(event: ExecutionEvent) -> None:
        for observer in observers:
            observer(event)

    return _composed


# ==================================================
# In-memory Metrics
# ==================================================


def _normalize_label(value: str | None, *, fallback: str) -> str:
    if value is None:
        return fallback
    stripped = value.strip()
    return stripped if stripped else fallback


def _event_labels(event: ExecutionEvent) -> dict[str, str]:
    return {
        "source": _normalize_label(event.source, fallback="unknown"),
        "event": _normalize_label(event.event, fallback="unknown"),
        "error_type": _normalize_label(event.error_type, fallback="none"),
    }


def _labels_key(labels: LabelMap) -> tuple[tuple[str, str], ...]:
    return tuple(sorted((str(key), str(value)) for key, value in labels.items()))


@dataclass(frozen=True)
class MetricPoint:
    """
    Single metric point lookup result.
    """

    name: str
    labels: Mapping[str, str]
    value: int | float


class InMemoryMetricsAdapter:
    """
    In-memory metrics adapter for ExecutionEvent streams.
    """

    def __init__(self) -> None:
        self._counters: dict[tuple[str, tuple[tuple[str, str], ...]], int] = {}
        self._histograms: dict[tuple[str, tuple[tuple[str, str], ...]], list[float]] = {}

    def __call__(self, event: ExecutionEvent) -> None:
        labels = _event_labels(event)
        if event.event == "query.end":
            self._inc("sqlstitch_queries_total", labels, 1)
            if not event.success:
                self._inc("sqlstitch_query_failures_total", labels, 1)
            if event.error_type == "RowValidationError":
                self._inc("sqlstitch_row_validation_failures_total", labels, 1)
            if event.duration_ms is not None:
                self._observe("sqlstitch_query_duration_ms", labels, event.duration_ms)
            return

        if event.event == "connection.acquire.end" and event.duration_ms is not None:
            self._observe("sqlstitch_connection_acquire_ms", labels, event.duration_ms)

    def _inc(self, metric: str, labels: LabelMap, delta: int) -> None:
        key = (metric, _labels_key(labels))
        self._counters[key] = self._counters.get(key, 0) + delta

    def _observe(self, metric: str, labels: LabelMap, value: float) -> None:
        key = (metric, _labels_key(labels))
        bucket = self._histograms.setdefault(key, [])
        bucket.append(value)

    def counter_value(self, metric: str, labels: LabelMap) -> int:
        return self._counters.get((metric, _labels_key(labels)), 0)

    def histogram_values(self, metric: str, labels: LabelMap) -> list[float]:
        values = self._histograms.get((metric, _labels_key(labels)), [])
        return list(values)

    def counters(self) -> list[MetricPoint]:
        points: list[MetricPoint] = []
        for (name, label_key), value in self._counters.items():
            points.append(MetricPoint(name=name, labels=dict(label_key), value=value))
        return points

    def histograms(self) -> list[MetricPoint]:
        points: list[MetricPoint] = []
        for (name, label_key), values in self._histograms.items():
            for value in values:
                points.append(MetricPoint(name=name, labels=dict(label_key), value=value))
        return points
