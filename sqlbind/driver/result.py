"""Result accessors and result-shape decoding.

:class:`ResultSet` exposes a DB-API cursor one row at a time, :class:`SqlRow`
is the row view handed to row parsers and :class:`SqlResult` turns a result
set into the shape requested by the caller.
"""

from collections import deque
from collections.abc import Hashable, Iterable, Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar, Union

from mypy_extensions import mypyc_attr

from sqlbind.exceptions import IllegalStateError, NotFoundError

if TYPE_CHECKING:
    from sqlbind.typing import RowParser

__all__ = ("ResultSet", "SqlResult", "SqlRow", "insert_int", "scalar")

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)
V = TypeVar("V")
C = TypeVar("C")

_MISSING = object()


@mypyc_attr(allow_interpreted_subclasses=False)
class SqlRow:
    """Immutable view of one result row.

    Columns are addressed by name (exact match first, then case-insensitive)
    or by 0-based index.
    """

    __slots__ = ("_columns", "_index", "_values")

    def __init__(self, values: "Sequence[Any]", columns: "Sequence[str]", index: "Mapping[str, int]") -> None:
        self._values = tuple(values)
        self._columns = tuple(columns)
        self._index = index

    def _position(self, column: str) -> int:
        position = self._index.get(column)
        if position is None:
            position = self._index.get(column.lower())
        if position is None:
            msg = f"No column named {column!r}, available columns: {', '.join(self._columns)}"
            raise KeyError(msg)
        return position

    def __getitem__(self, column: Union[str, int]) -> Any:
        if isinstance(column, int):
            return self._values[column]
        return self._values[self._position(column)]

    def get(self, column: Union[str, int], default: Any = None) -> Any:
        try:
            return self[column]
        except (KeyError, IndexError):
            return default

    def keys(self) -> "tuple[str, ...]":
        return self._columns

    def values(self) -> "tuple[Any, ...]":
        return self._values

    def as_dict(self) -> "dict[str, Any]":
        return dict(zip(self._columns, self._values))

    def __contains__(self, column: object) -> bool:
        return column in self._index or (isinstance(column, str) and column.lower() in self._index)

    def __iter__(self) -> "Iterator[Any]":
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SqlRow):
            return self._values == other._values and self._columns == other._columns
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self._columns, self._values))

    def __repr__(self) -> str:
        return f"SqlRow({self.as_dict()!r})"


def _column_index(columns: "Sequence[str]") -> "dict[str, int]":
    index: dict[str, int] = {}
    for position, name in enumerate(columns):
        index.setdefault(name, position)
    for position, name in enumerate(columns):
        index.setdefault(name.lower(), position)
    return index


class ResultSet:
    """Row-at-a-time accessor over a DB-API cursor.

    The accessor starts positioned before the first row. ``fetch_size`` controls
    how rows are pulled from the cursor: ``None`` reads the whole result on the
    first call to :meth:`next`, a positive value uses ``fetchmany`` and a negative
    value (the streaming sentinel) pulls rows one by one.

    Closing the result set does not close the cursor, which belongs to the
    statement that produced it.
    """

    __slots__ = ("_buffer", "_closed", "_columns", "_cursor", "_exhausted", "_fetch_size", "_index", "_row")

    def __init__(self, cursor: Any, fetch_size: Optional[int] = None) -> None:
        self._cursor = cursor
        self._fetch_size = fetch_size
        description = cursor.description if cursor is not None else None
        self._columns: tuple[str, ...] = tuple(column[0] for column in description or ())
        self._index = _column_index(self._columns)
        self._buffer: deque[Any] = deque()
        self._exhausted = cursor is None or description is None
        self._row: Optional[SqlRow] = None
        self._closed = False

    @classmethod
    def from_rows(cls, column_names: "Sequence[str]", rows: "Iterable[Sequence[Any]]") -> "ResultSet":
        """Build a result set over rows already held in memory."""
        result = cls(None)
        result._columns = tuple(column_names)
        result._index = _column_index(result._columns)
        result._buffer.extend(rows)
        return result

    def _fill(self) -> None:
        if self._fetch_size is None:
            rows = self._cursor.fetchall()
            self._exhausted = True
        elif self._fetch_size > 0:
            rows = self._cursor.fetchmany(self._fetch_size)
            self._exhausted = len(rows) < self._fetch_size
        else:
            row = self._cursor.fetchone()
            rows = [] if row is None else [row]
            self._exhausted = row is None
        self._buffer.extend(rows)

    def next(self) -> bool:
        """Advance to the next row.

        Returns:
            True when positioned on a row, False when the result is exhausted.
        """
        if self._closed:
            msg = "Result set is closed"
            raise IllegalStateError(msg)
        if not self._buffer and not self._exhausted:
            self._fill()
        if not self._buffer:
            self._row = None
            return False
        raw = self._buffer.popleft()
        values = tuple(raw[column] for column in self._columns) if isinstance(raw, Mapping) else tuple(raw)
        self._row = SqlRow(values, self._columns, self._index)
        return True

    @property
    def row(self) -> SqlRow:
        if self._row is None:
            msg = "Result set is not positioned on a row"
            raise IllegalStateError(msg)
        return self._row

    @property
    def column_names(self) -> "tuple[str, ...]":
        return self._columns

    def get(self, column: Union[str, int]) -> Any:
        return self.row[column]

    def close(self) -> None:
        self._closed = True
        self._buffer.clear()
        self._row = None

    @property
    def is_closed(self) -> bool:
        return self._closed


class SqlResult:
    """Decode an executed result set into one of the supported shapes.

    Every method consumes the rows it needs; the owning preparer closes the
    result set afterwards.
    """

    __slots__ = ("result_set",)

    def __init__(self, result_set: "ResultSet") -> None:
        self.result_set = result_set

    def _decoded(self, parser: "RowParser[T]") -> "Iterator[T]":
        result_set = self.result_set
        while result_set.next():
            yield parser(result_set.row)

    def as_single(self, parser: "RowParser[T]") -> T:
        """Decode the first row.

        Raises:
            NotFoundError: The result has no rows.
        """
        if not self.result_set.next():
            msg = "No rows found"
            raise NotFoundError(msg)
        return parser(self.result_set.row)

    def as_single_option(self, parser: "RowParser[T]") -> Optional[T]:
        if not self.result_set.next():
            return None
        return parser(self.result_set.row)

    def as_list(self, parser: "RowParser[T]") -> "list[T]":
        return list(self._decoded(parser))

    def as_iterable(self, parser: "RowParser[T]") -> "tuple[T, ...]":
        return tuple(self._decoded(parser))

    def as_set(self, parser: "RowParser[T]") -> "set[T]":
        return set(self._decoded(parser))

    def as_dict(self, parser: "RowParser[tuple[K, V]]") -> "dict[K, V]":
        """Build a mapping from a parser yielding ``(key, value)`` pairs."""
        result: dict[K, V] = {}
        for key, value in self._decoded(parser):
            result[key] = value
        return result

    def as_collection(self, parser: "RowParser[T]", factory: "Callable[[Iterable[T]], C]") -> C:
        """Build an arbitrary container from the decoded rows.

        Args:
            parser: Row parser.
            factory: Callable building the container from an iterable, such as ``list`` or ``frozenset``.
        """
        return factory(self.as_list(parser))

    def as_pair_collection(
        self, parser: "RowParser[tuple[K, V]]", factory: "Callable[[Iterable[tuple[K, V]]], C]"
    ) -> C:
        pairs: list[tuple[K, V]] = []
        for key, value in self._decoded(parser):
            pairs.append((key, value))
        return factory(pairs)

    def as_scalar(self, default: Any = _MISSING) -> Any:
        """First column of the first row.

        Raises:
            NotFoundError: The result has no rows and no default was given.
        """
        if not self.result_set.next():
            if default is _MISSING:
                msg = "No rows found"
                raise NotFoundError(msg)
            return default
        return self.result_set.row[0]

    def as_scalar_option(self) -> Any:
        return self.as_scalar(None)


def insert_int(row: SqlRow) -> int:
    """Decode a generated key from the first column."""
    return int(row[0])


def scalar(row: SqlRow) -> Any:
    """Return the first column of ``row`` unchanged."""
    return row[0]
