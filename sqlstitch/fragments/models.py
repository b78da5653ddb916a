from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
import json
from typing import Any, Callable, Generic, Sequence

from sqlstitch.compiler.compiled_query import CompiledQuery
from sqlstitch.fragments.escaping import escape_identifier, escape_literal, escape_string
from sqlstitch.types import A, Accessor, I, Mapper, Value

# ==================================================
# Base classes
# ==================================================


@dataclass(frozen=True)
class Fragment(ABC, Generic[A]):
    """
    An immutable piece of an SQL expression.
    Renders itself to query text plus the accessors feeding its placeholders.
    """

    @abstractmethod
    def linearize(self, offset: int) -> tuple[str, list[Accessor[A]]]:
        """
        Returns the query text and one accessor per placeholder.
        The first placeholder is numbered ``offset``, the rest follow contiguously.
        """

    @abstractmethod
    def remap(self, mapper: Mapper[I, A]) -> Fragment[I]:
        """
        Returns a new fragment reading its arguments through ``mapper``.
        """

    @abstractmethod
    def render(self) -> str:
        """
        Human-readable trace form for debugging and tests. Not executable SQL.
        """

    def compile(self, offset: int = 1) -> CompiledQuery[A]:
        sql, accessors = self.linearize(offset)
        return CompiledQuery(sql=sql, accessors=tuple(accessors), offset=offset)

    def __str__(self) -> str:
        return self.render()

    @staticmethod
    def from_embedded(source: Any) -> Fragment[Any]:
        """
        Wraps an expression embedded in a template.
        Fragments are kept, builders are finalized, callables become arguments,
        anything else is bound as a value.
        """
        if isinstance(source, Fragment):
            return source
        if isinstance(source, FragmentSource):
            return source.build()
        if callable(source):
            return ArgumentFragment(source)
        return ValueFragment(source)


class FragmentSource(ABC, Generic[A]):
    """
    Something that is not a fragment yet but can be finalized into one.
    """

    @abstractmethod
    def build(self, mapper: Mapper[Any, A] | None = None) -> QueryFragment[Any]:
        pass


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _to_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), default=_json_default)


# ==================================================
# Constant fragments
# ==================================================


@dataclass(frozen=True)
class TextFragment(Fragment[A]):
    """
    Raw SQL inserted verbatim.
    """
    text: str

    def linearize(self, offset: int) -> tuple[str, list[Accessor[A]]]:
        return self.text, []

    def remap(self, mapper: Mapper[I, A]) -> TextFragment[I]:
        return TextFragment(self.text)

    def render(self) -> str:
        return self.text


@dataclass(frozen=True)
class EscapedStringFragment(Fragment[A]):
    """
    A string constant baked into the query text as a quoted SQL string.
    """
    text: str

    def linearize(self, offset: int) -> tuple[str, list[Accessor[A]]]:
        return escape_string(self.text), []

    def remap(self, mapper: Mapper[I, A]) -> EscapedStringFragment[I]:
        return EscapedStringFragment(self.text)

    def render(self) -> str:
        return f"<STRING {_to_json(self.text)}>"


@dataclass(frozen=True)
class LiteralFragment(Fragment[A]):
    """
    A value baked into the query text as an SQL literal.
    """
    value: Value

    def linearize(self, offset: int) -> tuple[str, list[Accessor[A]]]:
        return escape_literal(self.value), []

    def remap(self, mapper: Mapper[I, A]) -> LiteralFragment[I]:
        return LiteralFragment(self.value)

    def render(self) -> str:
        return f"<LITERAL {_to_json(self.value)}>"


@dataclass(frozen=True)
class IdentifierFragment(Fragment[A]):
    """
    Table names, column names, ...
    """
    name: str

    def linearize(self, offset: int) -> tuple[str, list[Accessor[A]]]:
        return escape_identifier(self.name), []

    def remap(self, mapper: Mapper[I, A]) -> IdentifierFragment[I]:
        return IdentifierFragment(self.name)

    def render(self) -> str:
        return f"<IDENT {self.name}>"


# ==================================================
# Placeholder fragments
# ==================================================


@dataclass(frozen=True)
class ValueFragment(Fragment[A]):
    """
    A value fixed when the fragment is built but sent to the server as a bind parameter.
    Shows up in the query text as $1, $2, ...
    """
    value: Value

    def linearize(self, offset: int) -> tuple[str, list[Accessor[A]]]:
        value = self.value

        def _fixed(_args: A) -> Value:
            return value

        return f"${offset}", [_fixed]

    def remap(self, mapper: Mapper[I, A]) -> ValueFragment[I]:
        return ValueFragment(self.value)

    def render(self) -> str:
        return f"<VALUE {_to_json(self.value)}>"


@dataclass(frozen=True)
class ArgumentFragment(Fragment[A]):
    """
    A value read from the argument passed when the query is executed.
    Shows up in the query text as $1, $2, ...
    """
    accessor: Callable[[A], Value]
    label: str | None = None

    def linearize(self, offset: int) -> tuple[str, list[Accessor[A]]]:
        return f"${offset}", [self.accessor]

    def remap(self, mapper: Mapper[I, A]) -> ArgumentFragment[I]:
        accessor = self.accessor

        def _mapped(args: I) -> Value:
            return accessor(mapper(args))

        return ArgumentFragment(_mapped, label=self.label)

    def render(self) -> str:
        if self.label is None:
            return "<ARG>"
        return f"<ARG {self.label}>"


# ==================================================
# Composite fragments
# ==================================================


@dataclass(frozen=True)
class QueryFragment(Fragment[A]):
    """
    An ordered sequence of fragments, e.g. a whole query or a subquery.
    """
    fragments: Sequence[Fragment[A]] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "fragments", tuple(self.fragments))

    def linearize(self, offset: int) -> tuple[str, list[Accessor[A]]]:
        parts: list[str] = []
        accessors: list[Accessor[A]] = []
        for fragment in self.fragments:
            text, fragment_accessors = fragment.linearize(offset + len(accessors))
            parts.append(text)
            accessors.extend(fragment_accessors)
        return "".join(parts), accessors

    def remap(self, mapper: Mapper[I, A]) -> QueryFragment[I]:
        return QueryFragment(tuple(fragment.remap(mapper) for fragment in self.fragments))

    def render(self) -> str:
        return "".join(fragment.render() for fragment in self.fragments)
