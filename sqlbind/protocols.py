"""Runtime-checkable protocols for the database capabilities sqlbind consumes.

The query layer only talks to these protocols. :mod:`sqlbind.driver` provides
implementations on top of any PEP 249 connection.
"""

from typing import TYPE_CHECKING, Any, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlbind.config import StatementConfig
    from sqlbind.driver.result import SqlRow
    from sqlbind.parameters.types import ParameterStyle

__all__ = ("ConnectionProtocol", "ResultSetProtocol", "StatementProtocol")


@runtime_checkable
class ResultSetProtocol(Protocol):
    """Cursor positioned before the first row until ``next`` is called."""

    def next(self) -> bool:
        """Advance to the next row, returning False when no row remains."""
        ...

    @property
    def row(self) -> "SqlRow":
        """The current row."""
        ...

    @property
    def column_names(self) -> "Sequence[str]": ...

    def get(self, column: Union[str, int]) -> Any: ...

    def close(self) -> None: ...

    @property
    def is_closed(self) -> bool: ...


@runtime_checkable
class StatementProtocol(Protocol):
    """Prepared statement bound by 1-based position."""

    def set_parameter(self, index: int, value: Any) -> None: ...

    def set_fetch_size(self, size: int) -> None: ...

    def execute(self) -> bool: ...

    def execute_update(self) -> int: ...

    def execute_query(self) -> ResultSetProtocol: ...

    def get_generated_keys(self) -> ResultSetProtocol: ...

    def close(self) -> None: ...

    @property
    def is_closed(self) -> bool: ...


@runtime_checkable
class ConnectionProtocol(Protocol):
    """Connection able to prepare positional statements."""

    @property
    def driver_name(self) -> str:
        """Identification text of the underlying driver."""
        ...

    @property
    def parameter_style(self) -> "ParameterStyle": ...

    @property
    def statement_config(self) -> "StatementConfig": ...

    def prepare(
        self,
        sql: str,
        parameter_count: int,
        *,
        return_generated_keys: bool = False,
        forward_only: bool = False,
        read_only: bool = False,
    ) -> StatementProtocol: ...
