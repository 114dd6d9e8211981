"""PEP 249 adapter, statement preparation and result decoding."""

from sqlbind.driver.connection import DBAPIConnection, ensure_connection
from sqlbind.driver.iterator import RowIterator
from sqlbind.driver.preparer import (
    InsertionStatementPreparer,
    NormalStatementPreparer,
    PreparerState,
    QueryParams,
    StatementPreparer,
    StreamedStatementPreparer,
)
from sqlbind.driver.result import ResultSet, SqlResult, SqlRow, insert_int, scalar
from sqlbind.driver.statement import GENERATED_KEY_COLUMN, PreparedStatement

__all__ = (
    "GENERATED_KEY_COLUMN",
    "DBAPIConnection",
    "InsertionStatementPreparer",
    "NormalStatementPreparer",
    "PreparedStatement",
    "PreparerState",
    "QueryParams",
    "ResultSet",
    "RowIterator",
    "SqlResult",
    "SqlRow",
    "StatementPreparer",
    "StreamedStatementPreparer",
    "ensure_connection",
    "insert_int",
    "scalar",
)
