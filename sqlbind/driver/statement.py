"""Bind-by-position prepared statement over a PEP 249 cursor."""

import contextlib
import sys
from typing import TYPE_CHECKING, Any, Callable, Optional

from sqlbind.driver.result import ResultSet
from sqlbind.exceptions import IllegalStateError, MissingParameterError, ParameterError
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlbind.protocols import ResultSetProtocol

__all__ = ("GENERATED_KEY_COLUMN", "PreparedStatement", "unbuffered_cursor_factory")

logger = get_logger("sqlbind.driver.statement")

GENERATED_KEY_COLUMN = "GENERATED_KEY"


def unbuffered_cursor_factory(connection: Any) -> "Optional[Callable[[], Any]]":
    """Find the server-side cursor class of a MySQL style driver.

    ``pymysql`` and ``MySQLdb`` expose ``cursors.SSCursor`` which streams rows
    instead of buffering the complete result client side. Only modules that are
    already imported by the driver are inspected.

    Returns:
        A zero argument callable opening an unbuffered cursor, or None.
    """
    package = type(connection).__module__.split(".", 1)[0]
    cursors = sys.modules.get(f"{package}.cursors")
    cursor_class = getattr(cursors, "SSCursor", None)
    if cursor_class is None:
        return None
    return lambda: connection.cursor(cursor_class)


class PreparedStatement:
    """A compiled statement whose values are set by 1-based position.

    The cursor is opened when the statement is first executed, so the fetch
    size can still be adjusted after binding.

    Args:
        connection: PEP 249 connection.
        sql: Compiled statement text.
        parameter_count: Number of positional markers in ``sql``.
        return_generated_keys: Whether :meth:`get_generated_keys` will be used.
        streaming_fetch_size: Fetch size that selects an unbuffered cursor.
    """

    __slots__ = (
        "_closed",
        "_connection",
        "_cursor",
        "_fetch_size",
        "_parameters",
        "_streaming_fetch_size",
        "forward_only",
        "parameter_count",
        "read_only",
        "return_generated_keys",
        "sql",
    )

    def __init__(
        self,
        connection: Any,
        sql: str,
        parameter_count: int,
        *,
        return_generated_keys: bool = False,
        forward_only: bool = False,
        read_only: bool = False,
        streaming_fetch_size: Optional[int] = None,
    ) -> None:
        self._connection = connection
        self.sql = sql
        self.parameter_count = parameter_count
        self.return_generated_keys = return_generated_keys
        self.forward_only = forward_only
        self.read_only = read_only
        self._streaming_fetch_size = streaming_fetch_size
        self._parameters: dict[int, Any] = {}
        self._cursor: Any = None
        self._fetch_size: Optional[int] = None
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            msg = "Statement is closed"
            raise IllegalStateError(msg)

    def set_parameter(self, index: int, value: Any) -> None:
        self._check_open()
        if not 1 <= index <= self.parameter_count:
            msg = f"Parameter index {index} is out of range 1..{self.parameter_count}"
            raise ParameterError(msg, self.sql)
        self._parameters[index] = value

    def set_fetch_size(self, size: int) -> None:
        self._check_open()
        self._fetch_size = size

    @property
    def fetch_size(self) -> Optional[int]:
        return self._fetch_size

    @property
    def parameters(self) -> "tuple[Any, ...]":
        """Bound values in slot order.

        Raises:
            MissingParameterError: A slot has no value.
        """
        missing = [index for index in range(1, self.parameter_count + 1) if index not in self._parameters]
        if missing:
            msg = f"No value specified for parameter(s) {', '.join(str(index) for index in missing)}"
            raise MissingParameterError(msg, self.sql)
        return tuple(self._parameters[index] for index in range(1, self.parameter_count + 1))

    def _open_cursor(self) -> Any:
        if self._cursor is not None:
            with contextlib.suppress(Exception):
                self._cursor.close()
            self._cursor = None
        factory = None
        if self._fetch_size is not None and self._fetch_size == self._streaming_fetch_size:
            factory = unbuffered_cursor_factory(self._connection)
        cursor = factory() if factory is not None else self._connection.cursor()
        if self._fetch_size is not None and self._fetch_size > 0:
            cursor.arraysize = self._fetch_size
        self._cursor = cursor
        return cursor

    def _run(self) -> Any:
        self._check_open()
        parameters = self.parameters
        cursor = self._open_cursor()
        logger.debug(
            "Executing statement with %d parameters",
            len(parameters),
            extra={"extra_fields": {"sql": self.sql, "parameter_count": len(parameters)}},
        )
        cursor.execute(self.sql, parameters)
        return cursor

    def execute(self) -> bool:
        """Execute the statement.

        Returns:
            True when the statement produced a result set.
        """
        return self._run().description is not None

    def execute_update(self) -> int:
        """Execute the statement and return the number of affected rows."""
        rowcount = self._run().rowcount
        return rowcount if rowcount is not None and rowcount >= 0 else 0

    def execute_query(self) -> "ResultSetProtocol":
        cursor = self._run()
        return ResultSet(cursor, self._fetch_size)

    def get_generated_keys(self) -> "ResultSetProtocol":
        """Keys generated by the last execution.

        Rows returned by the statement itself (``RETURNING``) are the keys.
        Otherwise the cursor's ``lastrowid`` is exposed as a single
        ``GENERATED_KEY`` column, or an empty result when the driver has none.
        """
        self._check_open()
        if not self.return_generated_keys:
            msg = "Statement was not prepared to return generated keys"
            raise IllegalStateError(msg)
        if self._cursor is None:
            msg = "Statement has not been executed"
            raise IllegalStateError(msg)
        if self._cursor.description is not None:
            return ResultSet(self._cursor)
        last_row_id = getattr(self._cursor, "lastrowid", None)
        rows = [] if last_row_id is None else [(last_row_id,)]
        return ResultSet.from_rows((GENERATED_KEY_COLUMN,), rows)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._cursor is not None:
            cursor, self._cursor = self._cursor, None
            cursor.close()
        logger.debug("Closed statement", extra={"extra_fields": {"sql": self.sql}})

    @property
    def is_closed(self) -> bool:
        return self._closed
