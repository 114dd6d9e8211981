"""Paginated queries.

Two strategies turn repeated page queries into one lazy stream of records:

- LIMIT/OFFSET: the query text gets ``LIMIT <limit> OFFSET <offset>`` appended
  and the offset advances by ``limit`` after each page.
- Continuation: a caller supplied function builds the next page query from
  the last record of the previous page (``None`` for the first page). Use it
  for keyset pagination, which stays fast on large offsets.

Each page is read completely into memory while the pages themselves are only
fetched when the consumer reaches them, so memory use is bounded by the page
size. Neither strategy adds an ``ORDER BY``: without a stable ordering in the
caller's query, rows can be skipped or repeated across pages. A continuation
that does not move strictly forward will page forever.
"""

from collections.abc import Iterator
from typing import TYPE_CHECKING, Callable, Generic, NamedTuple, Optional, TypeVar

from sqlbind.driver.connection import ensure_connection
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlbind.protocols import ConnectionProtocol
    from sqlbind.query import SqlQuery
    from sqlbind.typing import ConnectionLike, RowParser

__all__ = ("Page", "PaginatedQuery", "iterate_pages", "paginate", "paginate_limit_offset")

logger = get_logger("sqlbind.pagination")

T = TypeVar("T")
S = TypeVar("S")


class Page(Generic[T, S]):
    """One fetched page and the state used to fetch the page after it."""

    __slots__ = ("next_state", "records")

    def __init__(self, records: "list[T]", next_state: S) -> None:
        self.records = records
        self.next_state = next_state


def iterate_pages(fetch_page: "Callable[[S], Optional[Page[T, S]]]", initial_state: S) -> "Iterator[T]":
    """Yield the records of successive pages until ``fetch_page`` returns None.

    Args:
        fetch_page: Fetches the page for a state, returning None when done.
        initial_state: State of the first page.
    """
    state = initial_state
    while True:
        page = fetch_page(state)
        if page is None:
            return
        yield from page.records
        state = page.next_state


class _OffsetState(NamedTuple):
    offset: int
    done: bool = False


class PaginatedQuery(Generic[T]):
    """Execute a query page by page.

    Args:
        parser: Row parser applied to every record.
        connection: Connection used for every page query.
    """

    __slots__ = ("connection", "parser")

    def __init__(self, parser: "RowParser[T]", connection: "ConnectionLike") -> None:
        self.parser = parser
        self.connection: ConnectionProtocol = ensure_connection(connection)

    def with_query(self, next_query: "Callable[[Optional[T]], SqlQuery]") -> "Iterator[T]":
        """Page with queries built from the last record of the previous page.

        The queries are run unmodified; ``next_query`` must include its own
        ``LIMIT`` and the condition that moves past ``last_record``. Paging
        stops at the first empty page.
        """
        def fetch_page(last_record: Optional[T]) -> "Optional[Page[T, Optional[T]]]":
            query = next_query(last_record)
            records = query.as_list(self.connection, self.parser)
            logger.debug(
                "Fetched continuation page with %d records",
                len(records),
                extra={"extra_fields": {"records": len(records), "first_page": last_record is None}},
            )
            if not records:
                return None
            return Page(records, records[-1])

        return iterate_pages(fetch_page, None)

    def with_limit_and_offset(self, limit: int, starting_offset: int, query: "SqlQuery") -> "Iterator[T]":
        """Page by appending ``LIMIT``/``OFFSET`` to an already bound query.

        Paging stops at an empty page, or right after a page shorter than
        ``limit`` since the page after it cannot hold any rows. Limits and
        offsets are used as given.
        """

        def fetch_page(state: _OffsetState) -> "Optional[Page[T, _OffsetState]]":
            if state.done:
                return None
            page_query = query.with_query(f"{query.query} LIMIT {limit} OFFSET {state.offset}")
            records = page_query.as_list(self.connection, self.parser)
            logger.debug(
                "Fetched page at offset %d with %d records",
                state.offset,
                len(records),
                extra={"extra_fields": {"offset": state.offset, "limit": limit, "records": len(records)}},
            )
            if not records:
                return None
            return Page(records, _OffsetState(state.offset + limit, done=len(records) < limit))

        return iterate_pages(fetch_page, _OffsetState(starting_offset))


def paginate(
    parser: "RowParser[T]", connection: "ConnectionLike", next_query: "Callable[[Optional[T]], SqlQuery]"
) -> "Iterator[T]":
    """Stream records using continuation queries. See :meth:`PaginatedQuery.with_query`."""
    return PaginatedQuery(parser, connection).with_query(next_query)


def paginate_limit_offset(
    parser: "RowParser[T]", connection: "ConnectionLike", limit: int, starting_offset: int, query: "SqlQuery"
) -> "Iterator[T]":
    """Stream records using LIMIT/OFFSET pages. See :meth:`PaginatedQuery.with_limit_and_offset`."""
    return PaginatedQuery(parser, connection).with_limit_and_offset(limit, starting_offset, query)
