from sqlstitch.fragments.builder import (
    Builder,
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
from sqlstitch.fragments.escaping import escape_identifier, escape_literal, escape_string
from sqlstitch.fragments.models import (
    ArgumentFragment,
    EscapedStringFragment,
    Fragment,
    FragmentSource,
    IdentifierFragment,
    LiteralFragment,
    QueryFragment,
    TextFragment,
    ValueFragment,
)

__all__ = [
    "Builder",
    "sql",
    "ident",
    "literal",
    "arg",
    "string",
    "raw",
    "join",
    "i",
    "l",
    "a",
    "escape_string",
    "escape_literal",
    "escape_identifier",
    "Fragment",
    "FragmentSource",
    "TextFragment",
    "EscapedStringFragment",
    "LiteralFragment",
    "IdentifierFragment",
    "ValueFragment",
    "ArgumentFragment",
    "QueryFragment",
]
