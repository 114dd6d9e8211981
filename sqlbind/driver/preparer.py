"""Statement preparation, binding and execution.

Each preparer compiles a query's template, binds its recorded parameters,
executes it and releases the statement. The three variants differ in how the
statement is prepared and what execution yields:

- :class:`NormalStatementPreparer` runs the statement and decodes its result.
- :class:`InsertionStatementPreparer` runs an update and decodes the generated keys.
- :class:`StreamedStatementPreparer` hands the open result to the caller, who
  becomes responsible for closing it.

A preparer moves through ``UNCOMPILED -> COMPILED -> EXECUTED -> CLOSED`` and
never executes twice. Any failure during compilation, binding, execution or
decoding releases the statement before the error propagates.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Optional, TypeVar

from sqlbind.config import StatementConfig
from sqlbind.driver.result import SqlResult
from sqlbind.exceptions import IllegalStateError
from sqlbind.parameters.binder import BindAction, SqlStatement, apply_bind_actions
from sqlbind.parameters.parser import PlaceholderParser, get_default_parser
from sqlbind.parameters.types import ListParameter
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlbind.protocols import ConnectionProtocol, ResultSetProtocol, StatementProtocol
    from sqlbind.typing import ResultCallback

__all__ = (
    "InsertionStatementPreparer",
    "NormalStatementPreparer",
    "PreparerState",
    "QueryParams",
    "StatementPreparer",
    "StreamedStatementPreparer",
)

logger = get_logger("sqlbind.driver.preparer")

T = TypeVar("T")

_uncached_parser = PlaceholderParser(cache_size=0)


class PreparerState(str, Enum):
    UNCOMPILED = "uncompiled"
    COMPILED = "compiled"
    EXECUTED = "executed"
    CLOSED = "closed"


class QueryParams:
    """Everything a preparer needs from a query: template, bind actions and list declarations."""

    __slots__ = ("actions", "list_parameters", "query")

    def __init__(
        self,
        query: str,
        actions: "Sequence[BindAction]" = (),
        list_parameters: "Optional[Mapping[str, ListParameter]]" = None,
    ) -> None:
        self.query = query
        self.actions = tuple(actions)
        self.list_parameters: Mapping[str, ListParameter] = dict(list_parameters or {})

    def replace(self, query: str) -> "QueryParams":
        return QueryParams(query, self.actions, self.list_parameters)

    def __repr__(self) -> str:
        return (
            f"QueryParams(query={self.query!r}, actions={len(self.actions)}, "
            f"list_parameters={dict(self.list_parameters)!r})"
        )


class StatementPreparer(ABC):
    """Compile, bind and execute one query against one connection.

    The statement is compiled and bound on construction.

    Args:
        query_params: Template, bind actions and list declarations.
        connection: Connection preparing the statement.
    """

    __slots__ = ("connection", "parsed", "query_params", "state", "stmt")

    def __init__(self, query_params: QueryParams, connection: "ConnectionProtocol") -> None:
        self.query_params = query_params
        self.connection = connection
        self.state = PreparerState.UNCOMPILED
        self.parsed = self._parser().parse(query_params.query, query_params.list_parameters, connection.parameter_style)
        self.stmt = self._prepare()
        try:
            apply_bind_actions(
                SqlStatement(self.stmt, self.parsed, query_params.list_parameters), query_params.actions
            )
        except Exception:
            self._close()
            raise
        self.state = PreparerState.COMPILED
        logger.debug(
            "Prepared %s with %d parameters",
            type(self).__name__,
            self.parsed.parameter_count,
            extra={
                "extra_fields": {
                    "preparer": type(self).__name__,
                    "sql": self.parsed.sql,
                    "parameter_count": self.parsed.parameter_count,
                }
            },
        )

    @property
    def config(self) -> StatementConfig:
        return self.connection.statement_config

    def _parser(self) -> PlaceholderParser:
        if self.config.parse_cache_size <= 0:
            return _uncached_parser
        return get_default_parser()

    @abstractmethod
    def _prepare(self) -> "StatementProtocol":
        """Open the statement for ``self.parsed``."""

    @abstractmethod
    def _results(self) -> "ResultSetProtocol":
        """Execute the statement and return the result accessor."""

    def _begin_execution(self) -> None:
        if self.state is not PreparerState.COMPILED:
            msg = f"Cannot execute a statement that is {self.state.value}"
            raise IllegalStateError(msg)
        self.state = PreparerState.EXECUTED

    def _close(self) -> None:
        self.state = PreparerState.CLOSED
        self.stmt.close()

    def execute_with(self, callback: "ResultCallback[T]") -> T:
        """Execute, hand the result to ``callback`` and release everything.

        The result accessor and the statement are closed whether ``callback``
        returns or raises.
        """
        try:
            self._begin_execution()
            result_set = self._results()
            try:
                return callback(SqlResult(result_set))
            finally:
                result_set.close()
        finally:
            self._close()

    def execute(self) -> bool:
        """Execute for effect.

        Returns:
            True when the statement produced a result set.
        """
        try:
            self._begin_execution()
            return self.stmt.execute()
        finally:
            self._close()

    def execute_update(self) -> int:
        """Execute and return the number of affected rows."""
        try:
            self._begin_execution()
            return self.stmt.execute_update()
        finally:
            self._close()


class NormalStatementPreparer(StatementPreparer):
    """Prepare a statement for direct execution."""

    __slots__ = ()

    def _prepare(self) -> "StatementProtocol":
        return self.connection.prepare(self.parsed.sql, self.parsed.parameter_count)

    def _results(self) -> "ResultSetProtocol":
        return self.stmt.execute_query()


class InsertionStatementPreparer(StatementPreparer):
    """Prepare a statement that reports the keys it generates."""

    __slots__ = ()

    def _prepare(self) -> "StatementProtocol":
        return self.connection.prepare(self.parsed.sql, self.parsed.parameter_count, return_generated_keys=True)

    def _results(self) -> "ResultSetProtocol":
        self.stmt.execute_update()
        return self.stmt.get_generated_keys()


class StreamedStatementPreparer(StatementPreparer):
    """Prepare a forward-only, read-only statement that streams its rows.

    Drivers matching the configured streaming markers (MySQL) ignore every
    finite fetch size, so they are given the streaming sentinel instead.

    Args:
        query_params: Template, bind actions and list declarations.
        connection: Connection preparing the statement.
        fetch_size: Rows pulled per round trip, defaults to the configured fetch size.
    """

    __slots__ = ("fetch_size",)

    def __init__(
        self, query_params: QueryParams, connection: "ConnectionProtocol", fetch_size: Optional[int] = None
    ) -> None:
        self.fetch_size = connection.statement_config.fetch_size_for(connection.driver_name, fetch_size)
        super().__init__(query_params, connection)

    def _prepare(self) -> "StatementProtocol":
        stmt = self.connection.prepare(
            self.parsed.sql, self.parsed.parameter_count, forward_only=True, read_only=True
        )
        try:
            stmt.set_fetch_size(self.fetch_size)
        except Exception:
            stmt.close()
            raise
        return stmt

    def _results(self) -> "ResultSetProtocol":
        return self.stmt.execute_query()

    def execute_with(self, callback: "ResultCallback[T]") -> T:
        """Execute and hand the open result to ``callback``.

        Nothing is closed on success: ``callback`` takes ownership of the result
        accessor and of :attr:`stmt`. On failure both are released.
        """
        self._begin_execution()
        result_set: Optional[ResultSetProtocol] = None
        try:
            result_set = self._results()
            return callback(SqlResult(result_set))
        except Exception:
            if result_set is not None:
                result_set.close()
            self._close()
            raise

