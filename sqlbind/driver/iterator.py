"""Lazily decoded row stream over an open result set."""

from collections.abc import Iterator
from types import TracebackType
from typing import TYPE_CHECKING, Generic, Optional, TypeVar

from sqlbind.exceptions import IllegalStateError
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlbind.protocols import ResultSetProtocol, StatementProtocol
    from sqlbind.typing import RowParser

__all__ = ("RowIterator",)

logger = get_logger("sqlbind.driver.iterator")

T = TypeVar("T")


class RowIterator(Generic[T], Iterator[T]):
    """Single-pass stream of decoded rows.

    The iterator owns the statement and the result set it reads from. Both are
    closed once the last row has been decoded, when the result turns out to be
    empty, or when :meth:`close` is called. A consumer that stops before the end
    must call :meth:`close` or use the iterator as a context manager::

        with query.as_iterator(connection, parse_user) as users:
            first = next(users)

    Args:
        parser: Row parser applied to each row.
        stmt: Statement that produced ``result_set``.
        result_set: Open result set positioned before the first row.
    """

    __slots__ = ("_closed", "_has_next", "_rows_read", "parser", "result_set", "stmt")

    def __init__(self, parser: "RowParser[T]", stmt: "StatementProtocol", result_set: "ResultSetProtocol") -> None:
        self.parser = parser
        self.stmt = stmt
        self.result_set = result_set
        self._closed = False
        self._has_next = False
        self._rows_read = 0
        self._advance()

    def _advance(self) -> None:
        try:
            self._has_next = self.result_set.next()
        except Exception:
            self.close()
            raise
        if not self._has_next:
            self.close()

    def has_next(self) -> bool:
        return self._has_next

    def next(self) -> T:
        """Decode the current row and advance.

        A parser error propagates after the stream has advanced, so the row
        that failed is skipped and an exhausted stream is still closed. A
        failed advance closes the stream. When both fail, the parser error is
        raised with the advance error as its cause.

        Raises:
            IllegalStateError: No row remains.
        """
        if not self._has_next:
            msg = "Row iterator is exhausted"
            raise IllegalStateError(msg)
        self._rows_read += 1
        try:
            value = self.parser(self.result_set.row)
        except Exception as decode_error:
            try:
                self._advance()
            except Exception as advance_error:
                raise decode_error from advance_error
            raise
        self._advance()
        return value

    def __next__(self) -> T:
        if not self._has_next:
            raise StopIteration
        return self.next()

    def __iter__(self) -> "RowIterator[T]":
        return self

    def close(self) -> None:
        """Release the result set and the statement. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        self._has_next = False
        try:
            if not self.result_set.is_closed:
                self.result_set.close()
        finally:
            if not self.stmt.is_closed:
                self.stmt.close()
        logger.debug("Closed row iterator", extra={"extra_fields": {"rows_read": self._rows_read}})

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def rows_read(self) -> int:
        return self._rows_read

    def __enter__(self) -> "RowIterator[T]":
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        self.close()
