"""Placeholder parsing and named parameter binding."""

from sqlbind.parameters.binder import BindAction, SqlStatement, TupleStatement, apply_bind_actions
from sqlbind.parameters.parser import PlaceholderParser, get_default_parser, parse_template
from sqlbind.parameters.types import (
    PARAMSTYLE_MAP,
    CommaSeparated,
    ListParameter,
    ParameterStyle,
    ParsedTemplate,
    PositionalMap,
    Tupled,
)

__all__ = (
    "PARAMSTYLE_MAP",
    "BindAction",
    "CommaSeparated",
    "ListParameter",
    "ParameterStyle",
    "ParsedTemplate",
    "PlaceholderParser",
    "PositionalMap",
    "SqlStatement",
    "TupleStatement",
    "Tupled",
    "apply_bind_actions",
    "get_default_parser",
    "parse_template",
)
