"""Named to positional parameter binding.

Bind actions are recorded by name on a query and replayed against a compiled
statement once its positional map is known. A name that occurs several times
in the template receives the same value at every slot it occupies.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Optional

from sqlbind.exceptions import (
    ExtraParameterError,
    IllegalStateError,
    MissingParameterError,
    TupleArityMismatchError,
    UnknownParameterError,
)
from sqlbind.parameters.types import CommaSeparated, ListParameter, ParsedTemplate, Tupled

if TYPE_CHECKING:
    from sqlbind.protocols import StatementProtocol
    from sqlbind.typing import BindProcedure, TupleProcedure

__all__ = ("BindAction", "SqlStatement", "TupleStatement", "apply_bind_actions")


class SqlStatement:
    """Named view over a compiled statement.

    Args:
        stmt: Statement accepting 1-based positional values.
        parsed: Compiled text and positional map of ``stmt``.
        list_parameters: List declarations the template was compiled with.
    """

    __slots__ = ("list_parameters", "parsed", "stmt")

    def __init__(
        self,
        stmt: "StatementProtocol",
        parsed: ParsedTemplate,
        list_parameters: "Optional[Mapping[str, ListParameter]]" = None,
    ) -> None:
        self.stmt = stmt
        self.parsed = parsed
        self.list_parameters: Mapping[str, ListParameter] = list_parameters or {}

    def slots(self, name: str) -> "tuple[int, ...]":
        """Slots occupied by ``name``.

        Raises:
            UnknownParameterError: ``name`` does not appear in the statement.
        """
        slots = self.parsed.slots(name)
        if slots is None:
            msg = f"Unknown parameter {name!r}"
            raise UnknownParameterError(msg, self.parsed.sql)
        return slots

    def bind(self, name: str, value: Any) -> None:
        """Set ``value`` at every slot of a plain placeholder.

        A declared comma group receives the value element-wise instead.

        Raises:
            IllegalStateError: ``name`` is declared as a tuple group.
        """
        declaration = self.list_parameters.get(name)
        if isinstance(declaration, CommaSeparated):
            self.bind_list(name, value)
            return
        if isinstance(declaration, Tupled):
            msg = f"Parameter {name!r} is declared as tupled, bind it with on_tuples"
            raise IllegalStateError(msg)
        for slot in self.slots(name):
            self.stmt.set_parameter(slot, value)

    def bind_list(self, name: str, values: "Iterable[Any]") -> None:
        """Bind the elements of ``values`` to the slots of a comma group.

        Every occurrence of the placeholder receives the full list.

        Raises:
            MissingParameterError: Fewer values than the declared count.
            ExtraParameterError: More values than the declared count.
        """
        slots = self.slots(name)
        items = list(values)
        declaration = self.list_parameters.get(name)
        count = declaration.count if isinstance(declaration, CommaSeparated) else len(slots)
        if len(items) < count:
            msg = f"Parameter {name!r} expects {count} values, got {len(items)}"
            raise MissingParameterError(msg, self.parsed.sql)
        if len(items) > count:
            msg = f"Parameter {name!r} expects {count} values, got {len(items)}"
            raise ExtraParameterError(msg, self.parsed.sql)
        if count == 0:
            return
        for i, slot in enumerate(slots):
            self.stmt.set_parameter(slot, items[i % count])

    def bind_tuples(
        self, name: str, records: "Iterable[Any]", procedure: "TupleProcedure"
    ) -> None:
        """Bind one record per tuple of a tupled placeholder.

        The slots of each occurrence are walked in strides of the tuple width;
        ``procedure`` receives the record and a :class:`TupleStatement` scoped
        to that stride.

        Raises:
            IllegalStateError: ``name`` was not declared with ``tupled``.
            TupleArityMismatchError: The record count differs from the declared count.
        """
        declaration = self.list_parameters.get(name)
        if not isinstance(declaration, Tupled):
            msg = f"Parameter {name!r} was not declared as tupled"
            raise IllegalStateError(msg)
        slots = self.slots(name)
        rows = list(records)
        if len(rows) != declaration.count:
            msg = f"Parameter {name!r} declares {declaration.count} tuples, got {len(rows)} records"
            raise TupleArityMismatchError(msg, self.parsed.sql)

        block = declaration.slot_count
        if block == 0:
            return
        for occurrence in range(0, len(slots), block):
            start = slots[occurrence]
            for record in rows:
                procedure(record, TupleStatement(self.stmt, declaration.offsets, start, self.parsed.sql))
                start += declaration.tuple_size


class TupleStatement:
    """Positional view over a single tuple of a tupled placeholder.

    Column names map to ``start + offset`` where ``offset`` is the column's
    index in the declared column list.
    """

    __slots__ = ("_sql", "offsets", "start", "stmt")

    def __init__(self, stmt: "StatementProtocol", offsets: "Mapping[str, int]", start: int, sql: str = "") -> None:
        self.stmt = stmt
        self.offsets = offsets
        self.start = start
        self._sql = sql

    def bind(self, column: str, value: Any) -> None:
        offset = self.offsets.get(column)
        if offset is None:
            msg = f"Unknown tuple column {column!r}"
            raise UnknownParameterError(msg, self._sql)
        self.stmt.set_parameter(self.start + offset, value)

    def bind_many(self, **values: Any) -> None:
        for column, value in values.items():
            self.bind(column, value)


class BindAction:
    """A deferred bind recorded on a query.

    Args:
        procedure: Callable applied to the :class:`SqlStatement` at compile time.
        name: Placeholder the action targets, ``None`` for free-form procedures.
    """

    __slots__ = ("name", "procedure")

    def __init__(self, procedure: "BindProcedure", name: Optional[str] = None) -> None:
        self.procedure = procedure
        self.name = name

    @classmethod
    def value(cls, name: str, value: Any) -> "BindAction":
        return cls(lambda statement: statement.bind(name, value), name)

    @classmethod
    def tuples(
        cls, name: str, records: "Sequence[Any]", procedure: "TupleProcedure"
    ) -> "BindAction":
        return cls(lambda statement: statement.bind_tuples(name, records, procedure), name)

    def __call__(self, statement: SqlStatement) -> None:
        self.procedure(statement)

    def __repr__(self) -> str:
        return f"BindAction(name={self.name!r})"


def apply_bind_actions(statement: SqlStatement, actions: "Iterable[BindAction]") -> None:
    """Apply ``actions`` in declaration order so later binds override earlier ones."""
    for action in actions:
        action(statement)
