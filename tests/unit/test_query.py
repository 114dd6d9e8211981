"""Unit tests for query values."""

import pytest

from sqlbind.exceptions import IllegalStateError
from sqlbind.parameters.types import CommaSeparated, ParameterStyle, Tupled
from sqlbind.query import SQL, ExpandableQuery, SqlQuery


def test_sql_creates_expandable_query() -> None:
    query = SQL("SELECT 1")

    assert isinstance(query, ExpandableQuery)
    assert query.query == "SELECT 1"
    assert query.actions == ()
    assert query.list_parameters == {}


def test_declarations_return_new_queries() -> None:
    base = SQL("SELECT * FROM t WHERE id IN ({ids}) AND (a, b) IN ({pairs})")
    expanded = base.commas("ids", 2).tupled("pairs", ["a", "b"], 3)

    assert base.list_parameters == {}
    assert expanded.list_parameters == {
        "ids": CommaSeparated("ids", 2),
        "pairs": Tupled("pairs", ["a", "b"], 3),
    }
    assert expanded.comma_separated("ids", 4).list_parameters["ids"] == CommaSeparated("ids", 4)


def test_expand_last_declaration_wins() -> None:
    query = SQL("{ids}").expand(CommaSeparated("ids", 1), CommaSeparated("ids", 5))
    assert query.list_parameters["ids"].count == 5


def test_binding_ends_expansion() -> None:
    bound = SQL("SELECT {a} WHERE id IN ({ids})").on(a=1)

    assert type(bound) is SqlQuery
    with pytest.raises(IllegalStateError, match="before parameters are bound"):
        bound.commas("ids", 2)
    with pytest.raises(IllegalStateError):
        bound.tupled("ids", ["x"], 1)
    with pytest.raises(IllegalStateError):
        bound.expand(CommaSeparated("ids", 2))


def test_on_appends_actions_in_order() -> None:
    base = SQL("SELECT {a}, {b}")
    first = base.on(a=1)
    second = first.on(lambda statement: None, b=2)

    assert [action.name for action in first.actions] == ["a"]
    assert [action.name for action in second.actions] == ["a", None, "b"]
    assert base.actions == ()


def test_on_tuples_materializes_records() -> None:
    records = (record for record in [(1, 2)])
    query = SQL("VALUES {rows}").tupled("rows", ["a", "b"], 1).on_tuples("rows", records, lambda r, ts: None)

    assert [action.name for action in query.actions] == ["rows"]


def test_with_query_keeps_binds() -> None:
    query = SQL("SELECT {a}").commas("ids", 1).on(a=1)
    moved = query.with_query("SELECT {a} LIMIT 10")

    assert moved.query == "SELECT {a} LIMIT 10"
    assert moved.actions == query.actions
    assert moved.list_parameters == query.list_parameters


def test_parse_without_database() -> None:
    parsed = SQL("SELECT * FROM t WHERE id IN ({ids}) AND x = {x}").commas("ids", 2).parse(ParameterStyle.NUMERIC)

    assert parsed.sql == "SELECT * FROM t WHERE id IN ($1,$2) AND x = $3"
    assert parsed.parameter_count == 3


def test_repr() -> None:
    assert repr(SQL("SELECT {a}").on(a=1)) == "SqlQuery(query='SELECT {a}', actions=1, list_parameters={})"
