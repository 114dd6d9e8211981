from typing import TYPE_CHECKING, Any, Callable, Union

from typing_extensions import TypeAlias, TypeVar

if TYPE_CHECKING:
    from sqlbind.driver.result import SqlResult, SqlRow
    from sqlbind.parameters.binder import SqlStatement, TupleStatement
    from sqlbind.protocols import ConnectionProtocol

__all__ = (
    "BindProcedure",
    "ConnectionLike",
    "RecordT",
    "ResultCallback",
    "RowParser",
    "RowT",
    "TupleProcedure",
)

RowT = TypeVar("RowT", default=Any)
RecordT = TypeVar("RecordT", default=Any)

RowParser: TypeAlias = "Callable[[SqlRow], RowT]"
"""Decode one :class:`~sqlbind.driver.result.SqlRow` into a value."""
BindProcedure: TypeAlias = "Callable[[SqlStatement], None]"
TupleProcedure: TypeAlias = "Callable[[RecordT, TupleStatement], None]"
"""Bind one record through a tuple-scoped statement."""
ResultCallback: TypeAlias = "Callable[[SqlResult], RowT]"
ConnectionLike: TypeAlias = "Union[ConnectionProtocol, Any]"
"""A :class:`~sqlbind.protocols.ConnectionProtocol` or a raw PEP 249 connection."""
