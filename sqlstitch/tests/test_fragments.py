from datetime import date

import pytest

from sqlstitch.fragments.models import (
    ArgumentFragment,
    EscapedStringFragment,
    Fragment,
    IdentifierFragment,
    LiteralFragment,
    QueryFragment,
    TextFragment,
    ValueFragment,
)
from sqlstitch.fragments.builder import sql


def test_text_fragment_is_verbatim() -> None:
    fragment = TextFragment("SELECT 'a%' -- $1")
    assert fragment.linearize(7) == ("SELECT 'a%' -- $1", [])
    assert fragment.render() == "SELECT 'a%' -- $1"


def test_escaped_string_fragment_quotes_text() -> None:
    fragment = EscapedStringFragment("it's")
    assert fragment.linearize(1) == ("'it''s'", [])
    assert fragment.render() == "<STRING \"it's\">"


def test_literal_fragment_renders_inline() -> None:
    assert LiteralFragment(3).linearize(1) == ("3", [])
    assert LiteralFragment("test").linearize(1) == ("'test'", [])
    assert LiteralFragment(None).linearize(1) == ("NULL", [])


def test_literal_fragment_trace_is_json() -> None:
    assert LiteralFragment("test").render() == '<LITERAL "test">'
    assert LiteralFragment(3).render() == "<LITERAL 3>"
    assert LiteralFragment(None).render() == "<LITERAL null>"
    assert LiteralFragment(date(2024, 1, 31)).render() == '<LITERAL "2024-01-31">'


def test_identifier_fragment_quotes_name() -> None:
    fragment = IdentifierFragment('my"table')
    assert fragment.linearize(1) == ('"my""table"', [])
    assert fragment.render() == '<IDENT my"table>'


def test_value_fragment_consumes_one_placeholder() -> None:
    fragment = ValueFragment({"test": "TEST"})
    text, accessors = fragment.linearize(4)
    assert text == "$4"
    assert len(accessors) == 1
    assert accessors[0]({"ignored": True}) == {"test": "TEST"}
    assert fragment.render() == '<VALUE {"test":"TEST"}>'


def test_argument_fragment_reads_argument_at_call_time() -> None:
    fragment = ArgumentFragment(lambda args: args["value"])
    text, accessors = fragment.linearize(2)
    assert text == "$2"
    assert accessors[0]({"value": 3}) == 3
    assert fragment.render() == "<ARG>"
    assert ArgumentFragment(lambda args: args["value"], label="value").render() == "<ARG value>"


def test_leaf_remap_clones_without_changing_text() -> None:
    leaves = [
        TextFragment("x"),
        EscapedStringFragment("s"),
        LiteralFragment(1),
        IdentifierFragment("t"),
        ValueFragment(5),
    ]
    for leaf in leaves:
        remapped = leaf.remap(lambda args: args["inner"])
        assert type(remapped) is type(leaf)
        assert remapped == leaf
        assert remapped.linearize(3)[0] == leaf.linearize(3)[0]


def test_argument_remap_composes_accessor_with_mapper() -> None:
    fragment = ArgumentFragment(lambda args: args["value"], label="value")
    remapped = fragment.remap(lambda outer: outer["inner"])

    _, accessors = remapped.linearize(1)
    assert accessors[0]({"inner": {"value": 9}}) == 9
    assert remapped.label == "value"
    # the receiver is untouched
    assert fragment.linearize(1)[1][0]({"value": 1}) == 1


def test_query_fragment_renumbers_children() -> None:
    fragment = QueryFragment(
        [
            TextFragment("A "),
            ValueFragment(1),
            TextFragment(" B "),
            ValueFragment(2),
            TextFragment(" C "),
            ValueFragment(3),
        ]
    )
    text, accessors = fragment.linearize(1)
    assert text == "A $1 B $2 C $3"
    assert [accessor(None) for accessor in accessors] == [1, 2, 3]


def test_query_fragment_is_immutable() -> None:
    children = [TextFragment("A")]
    fragment = QueryFragment(children)
    children.append(TextFragment("B"))

    assert fragment.fragments == (TextFragment("A"),)
    with pytest.raises(AttributeError):
        fragment.fragments = ()  # type: ignore[misc]


def test_from_embedded_classifies_sources() -> None:
    existing = TextFragment("x")
    assert Fragment.from_embedded(existing) is existing
    assert isinstance(Fragment.from_embedded(sql("SELECT 1")), QueryFragment)
    assert isinstance(Fragment.from_embedded(lambda args: args), ArgumentFragment)
    assert Fragment.from_embedded(3) == ValueFragment(3)
    assert Fragment.from_embedded(None) == ValueFragment(None)
    assert Fragment.from_embedded(b"\x00") == ValueFragment(b"\x00")


def test_compile_wraps_linearized_output() -> None:
    compiled = QueryFragment([TextFragment("SELECT "), ValueFragment(1)]).compile()
    assert compiled.sql == "SELECT $1"
    assert compiled.param_count == 1
    assert compiled.offset == 1
    assert compiled.bind({}) == [1]


def test_fragment_str_is_trace_form() -> None:
    fragment = QueryFragment([TextFragment("QUERY "), IdentifierFragment("test")])
    assert str(fragment) == "QUERY <IDENT test>"
