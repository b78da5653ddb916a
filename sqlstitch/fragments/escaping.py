"""
SQL escaping adapter.

Renders constants directly into query text using psycopg's ``sql`` module
without a live connection. None of these functions emit placeholders.
"""

from collections.abc import Mapping
from typing import Any

from psycopg import sql as pg_sql
from psycopg.types.json import Jsonb


def _adapt(value: Any) -> Any:
    # psycopg has no default dumper for mappings
    if isinstance(value, Mapping):
        return Jsonb(dict(value))
    if isinstance(value, (list, tuple)):
        return [_adapt(item) for item in value]
    return value


def escape_string(text: Any) -> str:
    """
    Renders text as a single-quoted SQL string literal.

    Examples:
        >>> escape_string("it's")
        "'it''s'"
    """
    return pg_sql.Literal(str(text)).as_string()


def escape_literal(value: Any) -> str:
    """
    Renders a value as an SQL literal: numbers bare, strings quoted, None as NULL.
    Mappings become ``jsonb`` literals.

    Examples:
        >>> escape_literal(3)
        '3'
        >>> escape_literal(None)
        'NULL'
    """
    return pg_sql.Literal(_adapt(value)).as_string()


def escape_identifier(name: str) -> str:
    """
    Renders a table or column name as a double-quoted identifier.

    Examples:
        >>> escape_identifier('my"table')
        '"my""table"'
    """
    return pg_sql.Identifier(name).as_string()
