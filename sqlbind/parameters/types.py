"""Core parameter types used throughout sqlbind.

This module holds the positional marker styles a compiled statement can be
rendered in, the list declarations that expand one placeholder into many
positional slots, and the result of parsing a template.
"""

from collections.abc import Mapping, Sequence
from enum import Enum
from types import MappingProxyType
from typing import Final, Optional, Union

from mypy_extensions import mypyc_attr
from typing_extensions import TypeAlias

__all__ = (
    "PARAMSTYLE_MAP",
    "CommaSeparated",
    "ListParameter",
    "ParameterStyle",
    "ParsedTemplate",
    "PositionalMap",
    "Tupled",
)


class ParameterStyle(str, Enum):
    """Positional marker style of a compiled statement."""

    QMARK = "qmark"
    NUMERIC = "numeric"
    POSITIONAL_COLON = "positional_colon"
    POSITIONAL_PYFORMAT = "pyformat_positional"

    def __str__(self) -> str:
        return self.value

    def marker(self, slot: int) -> str:
        """Render the marker for a 1-based positional slot.

        Args:
            slot: 1-based slot number.

        Returns:
            The driver-native marker text.
        """
        if self is ParameterStyle.QMARK:
            return "?"
        if self is ParameterStyle.POSITIONAL_PYFORMAT:
            return "%s"
        if self is ParameterStyle.NUMERIC:
            return f"${slot}"
        return f":{slot}"

    @property
    def escapes_percent(self) -> bool:
        """Whether literal ``%`` must be doubled in compiled text."""
        return self is ParameterStyle.POSITIONAL_PYFORMAT


# PEP 249 ``paramstyle`` values mapped to the positional style used for that driver.
PARAMSTYLE_MAP: Final["dict[str, ParameterStyle]"] = {
    "qmark": ParameterStyle.QMARK,
    "format": ParameterStyle.POSITIONAL_PYFORMAT,
    "pyformat": ParameterStyle.POSITIONAL_PYFORMAT,
    "numeric": ParameterStyle.POSITIONAL_COLON,
    "named": ParameterStyle.POSITIONAL_COLON,
}


@mypyc_attr(allow_interpreted_subclasses=False)
class CommaSeparated:
    """A placeholder expanded into ``count`` comma separated markers.

    ``SELECT * FROM users WHERE id IN ({ids})`` declared with a count of 3
    compiles to ``SELECT * FROM users WHERE id IN (?,?,?)``.
    """

    __slots__ = ("count", "name")

    def __init__(self, name: str, count: int) -> None:
        if count < 0:
            msg = f"Comma separated parameter {name!r} cannot have a negative count: {count}"
            raise ValueError(msg)
        self.name = name
        self.count = count

    @property
    def slot_count(self) -> int:
        return self.count

    def render(self, style: ParameterStyle, first_slot: int) -> str:
        return ",".join(style.marker(first_slot + i) for i in range(self.count))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CommaSeparated):
            return False
        return self.name == other.name and self.count == other.count

    def __hash__(self) -> int:
        return hash((CommaSeparated, self.name, self.count))

    def __repr__(self) -> str:
        return f"CommaSeparated(name={self.name!r}, count={self.count!r})"


@mypyc_attr(allow_interpreted_subclasses=False)
class Tupled:
    """A placeholder expanded into ``count`` parenthesized tuples of ``len(columns)`` markers.

    Used for multi-row inserts: ``INSERT INTO t (a, b) VALUES {rows}`` declared
    with columns ``("a", "b")`` and a count of 2 compiles to
    ``INSERT INTO t (a, b) VALUES (?,?),(?,?)``.
    """

    __slots__ = ("columns", "count", "name", "offsets")

    def __init__(self, name: str, columns: "Sequence[str]", count: int) -> None:
        if count < 0:
            msg = f"Tupled parameter {name!r} cannot have a negative count: {count}"
            raise ValueError(msg)
        self.name = name
        self.columns = tuple(columns)
        self.count = count
        self.offsets: Mapping[str, int] = MappingProxyType({column: i for i, column in enumerate(self.columns)})

    @property
    def tuple_size(self) -> int:
        return len(self.columns)

    @property
    def slot_count(self) -> int:
        return self.count * self.tuple_size

    def render(self, style: ParameterStyle, first_slot: int) -> str:
        size = self.tuple_size
        groups = []
        for i in range(self.count):
            start = first_slot + i * size
            groups.append("(" + ",".join(style.marker(start + j) for j in range(size)) + ")")
        return ",".join(groups)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tupled):
            return False
        return self.name == other.name and self.columns == other.columns and self.count == other.count

    def __hash__(self) -> int:
        return hash((Tupled, self.name, self.columns, self.count))

    def __repr__(self) -> str:
        return f"Tupled(name={self.name!r}, columns={self.columns!r}, count={self.count!r})"


ListParameter: TypeAlias = Union[CommaSeparated, Tupled]
PositionalMap: TypeAlias = Mapping[str, tuple[int, ...]]


@mypyc_attr(allow_interpreted_subclasses=False)
class ParsedTemplate:
    """Compiled statement text together with its positional map.

    Args:
        sql: Statement text with every placeholder replaced by positional markers.
        positions: Placeholder name mapped to its 1-based slots, in textual order.
        parameter_count: Total number of positional slots in ``sql``.
    """

    __slots__ = ("parameter_count", "positions", "sql")

    def __init__(self, sql: str, positions: "Mapping[str, tuple[int, ...]]", parameter_count: int) -> None:
        self.sql = sql
        self.positions: PositionalMap = MappingProxyType(dict(positions))
        self.parameter_count = parameter_count

    def slots(self, name: str) -> "Optional[tuple[int, ...]]":
        return self.positions.get(name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParsedTemplate):
            return False
        return self.sql == other.sql and dict(self.positions) == dict(other.positions)

    def __hash__(self) -> int:
        return hash((self.sql, tuple(self.positions.items())))

    def __repr__(self) -> str:
        return f"ParsedTemplate(sql={self.sql!r}, positions={dict(self.positions)!r})"
