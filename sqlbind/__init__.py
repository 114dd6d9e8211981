"""sqlbind: named placeholders, list expansion and result decoding over plain SQL."""

from sqlbind import driver, exceptions, parameters, typing, utils
from sqlbind.__metadata__ import __version__
from sqlbind.config import StatementConfig, default_statement_config
from sqlbind.driver import DBAPIConnection, RowIterator, SqlResult, SqlRow, insert_int, scalar
from sqlbind.exceptions import (
    ExtraParameterError,
    IllegalStateError,
    ImproperConfigurationError,
    MalformedPlaceholderError,
    MissingParameterError,
    NotFoundError,
    ParameterError,
    SQLBindError,
    SQLParsingError,
    TupleArityMismatchError,
    UnknownParameterError,
)
from sqlbind.pagination import PaginatedQuery, paginate, paginate_limit_offset
from sqlbind.parameters import CommaSeparated, ParameterStyle, Tupled
from sqlbind.query import SQL, ExpandableQuery, SqlQuery

__all__ = (
    "SQL",
    "CommaSeparated",
    "DBAPIConnection",
    "ExpandableQuery",
    "ExtraParameterError",
    "IllegalStateError",
    "ImproperConfigurationError",
    "MalformedPlaceholderError",
    "MissingParameterError",
    "NotFoundError",
    "PaginatedQuery",
    "ParameterError",
    "ParameterStyle",
    "RowIterator",
    "SQLBindError",
    "SQLParsingError",
    "SqlQuery",
    "SqlResult",
    "SqlRow",
    "StatementConfig",
    "TupleArityMismatchError",
    "Tupled",
    "UnknownParameterError",
    "__version__",
    "default_statement_config",
    "driver",
    "exceptions",
    "insert_int",
    "paginate",
    "paginate_limit_offset",
    "parameters",
    "scalar",
    "typing",
    "utils",
)
