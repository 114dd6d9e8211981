"""Unit tests for brace template parsing."""

import pytest

from sqlbind.exceptions import MalformedPlaceholderError
from sqlbind.parameters.parser import PlaceholderParser, parse_template
from sqlbind.parameters.types import CommaSeparated, ParameterStyle, Tupled


def test_repeated_name_and_escaped_braces() -> None:
    parsed = parse_template("SELECT * FROM t WHERE id={id} AND id={id} AND name={{literal}}")

    assert parsed.sql == "SELECT * FROM t WHERE id=? AND id=? AND name={literal}"
    assert dict(parsed.positions) == {"id": (1, 2)}
    assert parsed.parameter_count == 2


def test_positions_follow_textual_order() -> None:
    parsed = parse_template("UPDATE t SET a={a}, b={b} WHERE a={a} OR c={c}")

    assert parsed.sql == "UPDATE t SET a=?, b=? WHERE a=? OR c=?"
    assert dict(parsed.positions) == {"a": (1, 3), "b": (2,), "c": (4,)}
    assert parsed.parameter_count == 4


def test_template_without_placeholders() -> None:
    parsed = parse_template("SELECT 1")

    assert parsed.sql == "SELECT 1"
    assert dict(parsed.positions) == {}
    assert parsed.parameter_count == 0


@pytest.mark.parametrize(
    ("template", "expected"),
    [
        ("a } b", "a } b"),
        ("{{}}", "{}"),
        ("x}}", "x}"),
        ("{{{a}}}", "{?}"),
        ("name_{a}_suffix", "name_?_suffix"),
    ],
    ids=["lone_close", "escaped_pair", "trailing_escape", "escape_around_name", "embedded"],
)
def test_literal_braces(template: str, expected: str) -> None:
    assert parse_template(template).sql == expected


@pytest.mark.parametrize(
    ("template", "message", "position"),
    [
        ("SELECT {a", "Unterminated placeholder", 7),
        ("SELECT {", "Unterminated placeholder", 7),
        ("SELECT {}", "Empty placeholder name", 7),
        ("SELECT {a b}", "Invalid character ' ' in placeholder name", 9),
        ("SELECT {a-b}", "Invalid character '-' in placeholder name", 9),
    ],
    ids=["unterminated_name", "unterminated_brace", "empty", "space", "dash"],
)
def test_malformed_placeholders(template: str, message: str, position: int) -> None:
    with pytest.raises(MalformedPlaceholderError) as exc_info:
        parse_template(template)

    assert exc_info.value.position == position
    assert exc_info.value.template == template
    assert str(exc_info.value) == f"{message} at position {position}"


@pytest.mark.parametrize(
    ("count", "expected_sql", "expected_slots"),
    [
        (0, "SELECT * FROM t WHERE id IN () AND x=?", ()),
        (1, "SELECT * FROM t WHERE id IN (?) AND x=?", (1,)),
        (3, "SELECT * FROM t WHERE id IN (?,?,?) AND x=?", (1, 2, 3)),
    ],
    ids=["empty", "single", "three"],
)
def test_comma_separated_expansion(count: int, expected_sql: str, expected_slots: "tuple[int, ...]") -> None:
    parsed = parse_template("SELECT * FROM t WHERE id IN ({ids}) AND x={x}", {"ids": CommaSeparated("ids", count)})

    assert parsed.sql == expected_sql
    assert parsed.positions["ids"] == expected_slots
    assert parsed.positions["x"] == (count + 1,)
    assert parsed.parameter_count == count + 1


def test_repeated_comma_group_gets_contiguous_runs() -> None:
    parsed = parse_template("{ids} {x} {ids}", {"ids": CommaSeparated("ids", 2)}, ParameterStyle.NUMERIC)

    assert parsed.sql == "$1,$2 $3 $4,$5"
    assert parsed.positions["ids"] == (1, 2, 4, 5)
    assert parsed.positions["x"] == (3,)


def test_tupled_expansion() -> None:
    parsed = parse_template(
        "INSERT INTO users (name, age) VALUES {rows}", {"rows": Tupled("rows", ["name", "age"], 3)}
    )

    assert parsed.sql == "INSERT INTO users (name, age) VALUES (?,?),(?,?),(?,?)"
    assert parsed.positions["rows"] == (1, 2, 3, 4, 5, 6)
    assert parsed.parameter_count == 6


def test_undeclared_list_declaration_is_ignored() -> None:
    parsed = parse_template("SELECT {a}", {"ids": CommaSeparated("ids", 4)})

    assert parsed.sql == "SELECT ?"
    assert "ids" not in parsed.positions


@pytest.mark.parametrize(
    ("style", "expected"),
    [
        (ParameterStyle.QMARK, "SELECT * FROM t WHERE name LIKE 'a%' AND id=? AND x IN (?,?)"),
        (ParameterStyle.NUMERIC, "SELECT * FROM t WHERE name LIKE 'a%' AND id=$1 AND x IN ($2,$3)"),
        (ParameterStyle.POSITIONAL_COLON, "SELECT * FROM t WHERE name LIKE 'a%' AND id=:1 AND x IN (:2,:3)"),
        (ParameterStyle.POSITIONAL_PYFORMAT, "SELECT * FROM t WHERE name LIKE 'a%%' AND id=%s AND x IN (%s,%s)"),
    ],
    ids=["qmark", "numeric", "colon", "pyformat"],
)
def test_marker_styles(style: ParameterStyle, expected: str) -> None:
    parsed = parse_template(
        "SELECT * FROM t WHERE name LIKE 'a%' AND id={id} AND x IN ({xs})", {"xs": CommaSeparated("xs", 2)}, style
    )
    assert parsed.sql == expected


def test_cache_reuses_results() -> None:
    parser = PlaceholderParser(cache_size=10)
    first = parser.parse("SELECT {a}")
    second = parser.parse("SELECT {a}")

    assert first is second
    assert parser.cache_len == 1


def test_cache_key_includes_declarations_and_style() -> None:
    parser = PlaceholderParser(cache_size=10)
    plain = parser.parse("SELECT {ids}")
    expanded = parser.parse("SELECT {ids}", {"ids": CommaSeparated("ids", 2)})
    numeric = parser.parse("SELECT {ids}", style=ParameterStyle.NUMERIC)

    assert plain.sql == "SELECT ?"
    assert expanded.sql == "SELECT ?,?"
    assert numeric.sql == "SELECT $1"
    assert parser.cache_len == 3


def test_cache_evicts_least_recently_used() -> None:
    parser = PlaceholderParser(cache_size=2)
    first = parser.parse("SELECT {a}")
    parser.parse("SELECT {b}")
    parser.parse("SELECT {a}")
    parser.parse("SELECT {c}")

    assert parser.cache_len == 2
    assert parser.parse("SELECT {a}") is first


def test_cache_disabled() -> None:
    parser = PlaceholderParser(cache_size=0)
    first = parser.parse("SELECT {a}")

    assert parser.parse("SELECT {a}") == first
    assert parser.cache_len == 0


def test_clear_cache() -> None:
    parser = PlaceholderParser()
    parser.parse("SELECT {a}")
    parser.clear_cache()

    assert parser.cache_len == 0


def test_malformed_template_is_not_cached() -> None:
    parser = PlaceholderParser()
    with pytest.raises(MalformedPlaceholderError):
        parser.parse("SELECT {a")

    assert parser.cache_len == 0
