"""SQL query objects.

:func:`SQL` creates an :class:`ExpandableQuery`. List placeholders are
declared on it first, then values are bound with :meth:`SqlQuery.on`, which
returns a plain :class:`SqlQuery` that can no longer be expanded::

    ids = [1, 2, 3]
    users = (
        SQL("SELECT id, name FROM users WHERE id IN ({ids}) AND active = {active}")
        .commas("ids", len(ids))
        .on(ids=ids, active=True)
        .as_list(connection, lambda row: (row["id"], row["name"]))
    )

Every query value is immutable: declaring an expansion or binding a value
returns a new query.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar

from sqlbind.driver.connection import ensure_connection
from sqlbind.driver.iterator import RowIterator
from sqlbind.driver.preparer import (
    InsertionStatementPreparer,
    NormalStatementPreparer,
    QueryParams,
    StreamedStatementPreparer,
)
from sqlbind.driver.result import insert_int
from sqlbind.exceptions import IllegalStateError
from sqlbind.parameters.binder import BindAction
from sqlbind.parameters.parser import get_default_parser
from sqlbind.parameters.types import CommaSeparated, ListParameter, ParameterStyle, ParsedTemplate, Tupled

if TYPE_CHECKING:
    from collections.abc import Hashable

    from sqlbind.typing import BindProcedure, ConnectionLike, ResultCallback, RowParser, TupleProcedure

__all__ = ("SQL", "ExpandableQuery", "SqlQuery")

T = TypeVar("T")
K = TypeVar("K", bound="Hashable")
V = TypeVar("V")
C = TypeVar("C")


class SqlQuery:
    """A SQL template with recorded parameter binds.

    Args:
        query: Template text with ``{name}`` placeholders.
        actions: Bind actions in the order they were declared.
        list_parameters: List declarations keyed by placeholder name.
    """

    __slots__ = ("_actions", "_list_parameters", "query")

    def __init__(
        self,
        query: str,
        actions: "Sequence[BindAction]" = (),
        list_parameters: "Optional[Mapping[str, ListParameter]]" = None,
    ) -> None:
        self.query = query
        self._actions: tuple[BindAction, ...] = tuple(actions)
        self._list_parameters: dict[str, ListParameter] = dict(list_parameters or {})

    @property
    def actions(self) -> "tuple[BindAction, ...]":
        return self._actions

    @property
    def list_parameters(self) -> "Mapping[str, ListParameter]":
        return dict(self._list_parameters)

    @property
    def query_params(self) -> QueryParams:
        return QueryParams(self.query, self._actions, self._list_parameters)

    def _copy(self, actions: "Sequence[BindAction]") -> "SqlQuery":
        return SqlQuery(self.query, actions, self._list_parameters)

    def with_query(self, query: str) -> "SqlQuery":
        """Same binds and declarations over different template text."""
        return type(self)(query, self._actions, self._list_parameters)

    # -- expansion is only allowed before binding --
    def commas(self, name: str, count: int) -> "ExpandableQuery":
        msg = f"Cannot expand {name!r}: expansions must be declared before parameters are bound"
        raise IllegalStateError(msg)

    def comma_separated(self, name: str, count: int) -> "ExpandableQuery":
        return self.commas(name, count)

    def tupled(self, name: str, columns: "Sequence[str]", count: int) -> "ExpandableQuery":
        msg = f"Cannot expand {name!r}: expansions must be declared before parameters are bound"
        raise IllegalStateError(msg)

    def expand(self, *declarations: ListParameter) -> "ExpandableQuery":
        msg = "Expansions must be declared before parameters are bound"
        raise IllegalStateError(msg)

    # -- binding --
    def on(self, procedure: "Optional[BindProcedure]" = None, /, **values: Any) -> "SqlQuery":
        """Record parameter binds.

        Args:
            procedure: Optional callable receiving the :class:`~sqlbind.parameters.binder.SqlStatement`
                to bind values by hand.
            **values: Values bound by placeholder name. A declared comma group takes an iterable.

        Returns:
            A new query with the binds appended. Later binds override earlier ones.
        """
        actions = list(self._actions)
        if procedure is not None:
            actions.append(BindAction(procedure))
        actions.extend(BindAction.value(name, value) for name, value in values.items())
        return self._copy(actions)

    def on_tuples(
        self, name: str, records: "Iterable[T]", procedure: "TupleProcedure[T]"
    ) -> "SqlQuery":
        """Bind one record per tuple of a placeholder declared with :meth:`ExpandableQuery.tupled`.

        Args:
            name: Tupled placeholder name.
            records: Records to bind, exactly as many as the declared tuple count.
            procedure: Called with each record and a tuple-scoped statement.
        """
        return self._copy((*self._actions, BindAction.tuples(name, tuple(records), procedure)))

    def parse(self, style: ParameterStyle = ParameterStyle.QMARK) -> ParsedTemplate:
        """Compile the template without touching a database."""
        return get_default_parser().parse(self.query, self._list_parameters, style)

    # -- execution --
    def _normal(self, connection: "ConnectionLike") -> NormalStatementPreparer:
        return NormalStatementPreparer(self.query_params, ensure_connection(connection))

    def _insertion(self, connection: "ConnectionLike") -> InsertionStatementPreparer:
        return InsertionStatementPreparer(self.query_params, ensure_connection(connection))

    def execute(self, connection: "ConnectionLike") -> bool:
        """Execute the statement.

        Returns:
            True when the statement produced a result set.
        """
        return self._normal(connection).execute()

    def execute_update(self, connection: "ConnectionLike") -> int:
        """Execute the statement and return the number of affected rows."""
        return self._normal(connection).execute_update()

    def with_result(self, connection: "ConnectionLike", callback: "ResultCallback[T]") -> T:
        """Run the query and hand its result to ``callback``; the result is closed afterwards."""
        return self._normal(connection).execute_with(callback)

    def execute_insert_int(self, connection: "ConnectionLike") -> int:
        """Execute an insert and return the generated key."""
        return self._insertion(connection).execute_with(lambda result: result.as_single(insert_int))

    def execute_insert_ints(self, connection: "ConnectionLike") -> "list[int]":
        """Execute an insert and return every generated key."""
        return self._insertion(connection).execute_with(lambda result: result.as_list(insert_int))

    execute_insert_long = execute_insert_int
    execute_insert_longs = execute_insert_ints

    def execute_insert_single(self, connection: "ConnectionLike", parser: "RowParser[T]") -> T:
        """Execute an insert and decode the generated key with ``parser``."""
        return self._insertion(connection).execute_with(lambda result: result.as_single(parser))

    def execute_insert_collection(
        self,
        connection: "ConnectionLike",
        parser: "RowParser[T]",
        factory: "Callable[[Iterable[T]], C]" = list,  # type: ignore[assignment]
    ) -> C:
        """Execute an insert and decode every generated key into ``factory``."""
        return self._insertion(connection).execute_with(lambda result: result.as_collection(parser, factory))

    def as_single(self, connection: "ConnectionLike", parser: "RowParser[T]") -> T:
        """Decode the first row.

        Raises:
            NotFoundError: The query returned no rows.
        """
        return self._normal(connection).execute_with(lambda result: result.as_single(parser))

    def as_single_option(self, connection: "ConnectionLike", parser: "RowParser[T]") -> Optional[T]:
        return self._normal(connection).execute_with(lambda result: result.as_single_option(parser))

    def as_set(self, connection: "ConnectionLike", parser: "RowParser[T]") -> "set[T]":
        return self._normal(connection).execute_with(lambda result: result.as_set(parser))

    def as_list(self, connection: "ConnectionLike", parser: "RowParser[T]") -> "list[T]":
        return self._normal(connection).execute_with(lambda result: result.as_list(parser))

    as_seq = as_list

    def as_iterable(self, connection: "ConnectionLike", parser: "RowParser[T]") -> "tuple[T, ...]":
        return self._normal(connection).execute_with(lambda result: result.as_iterable(parser))

    def as_dict(self, connection: "ConnectionLike", parser: "RowParser[tuple[K, V]]") -> "dict[K, V]":
        """Decode rows into a mapping; ``parser`` must return ``(key, value)`` pairs."""
        return self._normal(connection).execute_with(lambda result: result.as_dict(parser))

    def as_scalar(self, connection: "ConnectionLike") -> Any:
        """First column of the first row.

        Raises:
            NotFoundError: The query returned no rows.
        """
        return self._normal(connection).execute_with(lambda result: result.as_scalar())

    def as_scalar_option(self, connection: "ConnectionLike") -> Any:
        return self._normal(connection).execute_with(lambda result: result.as_scalar_option())

    def as_collection(
        self, connection: "ConnectionLike", parser: "RowParser[T]", factory: "Callable[[Iterable[T]], C]"
    ) -> C:
        return self._normal(connection).execute_with(lambda result: result.as_collection(parser, factory))

    def as_pair_collection(
        self,
        connection: "ConnectionLike",
        parser: "RowParser[tuple[K, V]]",
        factory: "Callable[[Iterable[tuple[K, V]]], C]",
    ) -> C:
        return self._normal(connection).execute_with(lambda result: result.as_pair_collection(parser, factory))

    def as_iterator(
        self, connection: "ConnectionLike", parser: "RowParser[T]", fetch_size: Optional[int] = None
    ) -> "RowIterator[T]":
        """Stream decoded rows from an open cursor.

        The returned iterator owns the statement. It closes itself once
        exhausted; close it explicitly (or use it as a context manager) when
        stopping early. Many drivers refuse further queries on the connection
        until the stream is drained or closed.

        Args:
            connection: Connection to run the query on.
            parser: Row parser.
            fetch_size: Rows pulled per round trip. MySQL drivers always use the
                streaming sentinel instead.
        """
        preparer = StreamedStatementPreparer(self.query_params, ensure_connection(connection), fetch_size)
        return preparer.execute_with(lambda result: RowIterator(parser, preparer.stmt, result.result_set))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(query={self.query!r}, actions={len(self._actions)}, "
            f"list_parameters={self._list_parameters!r})"
        )


class ExpandableQuery(SqlQuery):
    """A query that still accepts list declarations."""

    __slots__ = ()

    def _declare(self, declaration: ListParameter) -> "ExpandableQuery":
        list_parameters = dict(self._list_parameters)
        list_parameters[declaration.name] = declaration
        return ExpandableQuery(self.query, self._actions, list_parameters)

    def commas(self, name: str, count: int) -> "ExpandableQuery":
        """Expand ``{name}`` into ``count`` comma separated markers."""
        return self._declare(CommaSeparated(name, count))

    def tupled(self, name: str, columns: "Sequence[str]", count: int) -> "ExpandableQuery":
        """Expand ``{name}`` into ``count`` parenthesized tuples of ``columns``."""
        return self._declare(Tupled(name, columns, count))

    def expand(self, *declarations: ListParameter) -> "ExpandableQuery":
        """Apply several declarations at once. The last declaration for a name wins."""
        query: ExpandableQuery = self
        for declaration in declarations:
            query = query._declare(declaration)
        return query


def SQL(query: str) -> ExpandableQuery:  # noqa: N802
    """Create a query from template text."""
    return ExpandableQuery(query)
