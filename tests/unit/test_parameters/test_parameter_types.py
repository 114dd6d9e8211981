"""Unit tests for parameter styles and list declarations."""

import pytest

from sqlbind.parameters.types import PARAMSTYLE_MAP, CommaSeparated, ParameterStyle, ParsedTemplate, Tupled


@pytest.mark.parametrize(
    ("style", "expected"),
    [
        (ParameterStyle.QMARK, ["?", "?", "?"]),
        (ParameterStyle.NUMERIC, ["$1", "$2", "$3"]),
        (ParameterStyle.POSITIONAL_COLON, [":1", ":2", ":3"]),
        (ParameterStyle.POSITIONAL_PYFORMAT, ["%s", "%s", "%s"]),
    ],
    ids=["qmark", "numeric", "colon", "pyformat"],
)
def test_marker(style: ParameterStyle, expected: "list[str]") -> None:
    assert [style.marker(slot) for slot in (1, 2, 3)] == expected


def test_only_pyformat_escapes_percent() -> None:
    assert [style for style in ParameterStyle if style.escapes_percent] == [ParameterStyle.POSITIONAL_PYFORMAT]


@pytest.mark.parametrize(
    ("paramstyle", "expected"),
    [
        ("qmark", ParameterStyle.QMARK),
        ("format", ParameterStyle.POSITIONAL_PYFORMAT),
        ("pyformat", ParameterStyle.POSITIONAL_PYFORMAT),
        ("numeric", ParameterStyle.POSITIONAL_COLON),
        ("named", ParameterStyle.POSITIONAL_COLON),
    ],
)
def test_paramstyle_map(paramstyle: str, expected: ParameterStyle) -> None:
    assert PARAMSTYLE_MAP[paramstyle] is expected


def test_comma_separated_render() -> None:
    declaration = CommaSeparated("ids", 3)

    assert declaration.slot_count == 3
    assert declaration.render(ParameterStyle.QMARK, 1) == "?,?,?"
    assert declaration.render(ParameterStyle.NUMERIC, 4) == "$4,$5,$6"


def test_comma_separated_empty() -> None:
    declaration = CommaSeparated("ids", 0)

    assert declaration.slot_count == 0
    assert declaration.render(ParameterStyle.QMARK, 1) == ""


def test_negative_counts_rejected() -> None:
    with pytest.raises(ValueError, match="negative count"):
        CommaSeparated("ids", -1)
    with pytest.raises(ValueError, match="negative count"):
        Tupled("rows", ["a"], -2)


def test_tupled_render_and_offsets() -> None:
    declaration = Tupled("rows", ["name", "age"], 2)

    assert declaration.tuple_size == 2
    assert declaration.slot_count == 4
    assert dict(declaration.offsets) == {"name": 0, "age": 1}
    assert declaration.render(ParameterStyle.QMARK, 1) == "(?,?),(?,?)"
    assert declaration.render(ParameterStyle.POSITIONAL_COLON, 3) == "(:3,:4),(:5,:6)"


def test_declarations_compare_by_value() -> None:
    assert CommaSeparated("ids", 2) == CommaSeparated("ids", 2)
    assert CommaSeparated("ids", 2) != CommaSeparated("ids", 3)
    assert Tupled("rows", ("a", "b"), 1) == Tupled("rows", ["a", "b"], 1)
    assert len({CommaSeparated("ids", 2), CommaSeparated("ids", 2)}) == 1


def test_parsed_template_slots() -> None:
    parsed = ParsedTemplate("SELECT ?, ?", {"a": (1, 2)}, 2)

    assert parsed.slots("a") == (1, 2)
    assert parsed.slots("b") is None
    assert parsed == ParsedTemplate("SELECT ?, ?", {"a": (1, 2)}, 2)
