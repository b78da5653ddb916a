from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable, Mapping, Sequence, TypeVar, Union

# ==================================================
# Shared Type Aliases
# ==================================================

# Values psycopg can adapt directly as bind parameters.
Value = Union[
    None,
    str,
    int,
    float,
    Decimal,
    bool,
    date,
    datetime,
    time,
    bytes,
    Sequence[Any],
    Mapping[str, Any],
]

A = TypeVar("A")
I = TypeVar("I")
Row = TypeVar("Row")

# Reads one bind value out of the argument supplied at execution time.
Accessor = Callable[[A], Value]

# Projects the argument of an outer query onto the argument shape of an embedded fragment.
Mapper = Callable[[I], A]
