from __future__ import annotations

import re
from string import Formatter
from typing import Any, Callable, Iterable, Mapping, Sequence

from sqlstitch.errors import InvalidUsageError
from sqlstitch.execution.observability import ObservabilitySettings
from sqlstitch.execution.query import BoundQuery, bind_query
from sqlstitch.fragments.models import (
    ArgumentFragment,
    EscapedStringFragment,
    Fragment,
    FragmentSource,
    IdentifierFragment,
    LiteralFragment,
    QueryFragment,
    TextFragment,
)
from sqlstitch.types import A, I, Mapper, Value

_FIELD_HEAD = re.compile(r"[^.\[]*")

# ==================================================
# Builder
# ==================================================


class Builder(FragmentSource[A]):
    """
    An SQL template that has not been finalized into a fragment yet.

    Holds ``n + 1`` literal text segments interleaved with ``n`` embedded
    expressions. Finalizing it can be repeated and always returns a fresh
    ``QueryFragment``.
    """

    def __init__(self, strings: Sequence[str], args: Sequence[Any] = ()) -> None:
        if len(strings) != len(args) + 1:
            raise InvalidUsageError(
                f"Expected {len(args) + 1} text segments for {len(args)} embedded expressions, got {len(strings)}."
            )
        self._strings = tuple(strings)
        self._args = tuple(args)

    @property
    def strings(self) -> tuple[str, ...]:
        return self._strings

    @property
    def args(self) -> tuple[Any, ...]:
        return self._args

    def _fragments(self) -> list[Fragment[A]]:
        fragments: list[Fragment[A]] = [TextFragment(self._strings[0])]
        for arg, text in zip(self._args, self._strings[1:]):
            fragments.append(Fragment.from_embedded(arg))
            fragments.append(TextFragment(text))
        return fragments

    def build(self, mapper: Mapper[I, A] | None = None) -> QueryFragment[Any]:
        """
        Finalizes the template into a fragment.
        Pass a mapper when embedding it in a query with a different argument shape.
        """
        fragment: QueryFragment[A] = QueryFragment(self._fragments())
        if mapper is None:
            return fragment
        return fragment.remap(mapper)

    def query(
        self,
        connection: Any,
        *,
        validate: Callable[[Any], bool] | None = None,
        observability_settings: ObservabilitySettings | None = None,
        offset: int = 1,
    ) -> BoundQuery[A, Any]:
        """
        Turns the template into an executable query on a connection.
        A plain psycopg AsyncConnection is wrapped in a PostgresConnection.
        """
        return bind_query(
            self.build(),
            connection,
            validate=validate,
            observability_settings=observability_settings,
            offset=offset,
        )

    def render(self) -> str:
        return self.build().render()

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"Builder({self.render()!r})"


# ==================================================
# Template Entry Point
# ==================================================


def _split_field_name(field_name: str) -> tuple[str, str]:
    # "0[1].x" -> ("0", "[1].x")
    head = _FIELD_HEAD.match(field_name).group(0)
    return head, field_name[len(head):]


def sql(template: str, *args: Any, **kwargs: Any) -> Builder[Any]:
    """
    Builds an SQL template using ``str.format`` field syntax.

    ``{}`` and ``{0}`` pick positional expressions, ``{name}`` picks keyword
    expressions. Use ``{{`` and ``}}`` for literal braces.

    Examples:
        >>> inner = sql("INNER {} {}", 1, 2)
        >>> sql("OUTER ({}) {}", inner, 3).build().compile().sql
        'OUTER (INNER $1 $2) $3'
    """
    formatter = Formatter()
    strings: list[str] = []
    embedded: list[Any] = []
    pending = ""
    next_auto_field: int | None = 0
    for literal_text, field_name, format_spec, conversion in formatter.parse(template):
        pending += literal_text
        if field_name is None:
            continue
        if conversion is not None or format_spec:
            raise InvalidUsageError(
                f"Conversions and format specs are not supported in SQL templates: {{{field_name}}}."
            )
        head, rest = _split_field_name(field_name)
        if head == "":
            if next_auto_field is None:
                raise InvalidUsageError("Cannot switch from manual field numbering to automatic field numbering.")
            field_name = f"{next_auto_field}{rest}"
            next_auto_field += 1
        elif head.isdigit():
            if next_auto_field:
                raise InvalidUsageError("Cannot switch from automatic field numbering to manual field numbering.")
            next_auto_field = None
        try:
            value, _ = formatter.get_field(field_name, args, kwargs)
        except (IndexError, KeyError, AttributeError, TypeError) as exc:
            raise InvalidUsageError(f"No expression supplied for template field {{{field_name}}}.") from exc
        strings.append(pending)
        embedded.append(value)
        pending = ""
    strings.append(pending)
    return Builder(strings, embedded)


# ==================================================
# Embedding Helpers
# ==================================================


def _join_pieces(pieces: Iterable[Any]) -> str:
    return "".join(str(piece) for piece in pieces)


def ident(*pieces: Any) -> IdentifierFragment[Any]:
    """
    Embeds an identifier: ``ident("users")`` or ``ident("events_", year)``.
    """
    if not pieces:
        raise InvalidUsageError("Identifier builder received no name.")
    return IdentifierFragment(_join_pieces(pieces))


def literal(*pieces: Any) -> LiteralFragment[Any]:
    """
    Embeds a literal rendered into the query text: ``literal(3)`` or ``literal("v", 2)``.
    Several pieces are joined as text into one string literal.
    """
    if not pieces:
        raise InvalidUsageError("Literal builder received no value.")
    if len(pieces) == 1:
        return LiteralFragment(pieces[0])
    return LiteralFragment(_join_pieces(pieces))


def string(*pieces: Any) -> EscapedStringFragment[Any]:
    """
    Embeds text as a quoted SQL string constant.
    """
    return EscapedStringFragment(_join_pieces(pieces))


def raw(text: str) -> TextFragment[Any]:
    """
    Embeds SQL text verbatim. Never pass untrusted input here.
    """
    return TextFragment(text)


def _lookup(args: Any, key: str) -> Value:
    if isinstance(args, Mapping):
        return args[key]
    return getattr(args, key)


def arg(*keys: str) -> ArgumentFragment[Any]:
    """
    Embeds the argument named ``key``, read when the query is executed.
    """
    if len(keys) != 1 or not isinstance(keys[0], str):
        raise InvalidUsageError("Argument builder received invalid arguments")
    key = keys[0]

    def _access(args: Any) -> Value:
        return _lookup(args, key)

    return ArgumentFragment(_access, label=key)


def join(separator: Any, parts: Iterable[Any]) -> QueryFragment[Any]:
    """
    Joins embedded expressions with a separator, e.g. ``join(", ", [arg("a"), arg("b")])``.
    A string separator is raw SQL text.
    """
    separator_fragment = TextFragment(separator) if isinstance(separator, str) else Fragment.from_embedded(separator)
    fragments: list[Fragment[Any]] = []
    for index, part in enumerate(parts):
        if index:
            fragments.append(separator_fragment)
        fragments.append(Fragment.from_embedded(part))
    return QueryFragment(fragments)


i = ident
l = literal
a = arg
