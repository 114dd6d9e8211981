"""PEP 249 connection adapter.

:class:`DBAPIConnection` lets any DB-API 2.0 connection act as a
:class:`~sqlbind.protocols.ConnectionProtocol`. The positional marker style is
taken from the driver module's ``paramstyle`` unless configured explicitly.
"""

import sys
from typing import Any, Optional

from sqlbind.config import StatementConfig, default_statement_config
from sqlbind.driver.statement import PreparedStatement
from sqlbind.exceptions import ImproperConfigurationError
from sqlbind.parameters.types import PARAMSTYLE_MAP, ParameterStyle
from sqlbind.protocols import ConnectionProtocol
from sqlbind.utils.logging import get_logger

__all__ = ("DBAPIConnection", "ensure_connection")

logger = get_logger("sqlbind.driver.connection")


def _driver_paramstyle(connection: Any) -> Optional[str]:
    module_name = type(connection).__module__
    while module_name:
        module = sys.modules.get(module_name)
        paramstyle = getattr(module, "paramstyle", None)
        if isinstance(paramstyle, str):
            return paramstyle
        module_name = module_name.rpartition(".")[0]
    return None


class DBAPIConnection:
    """Adapt a PEP 249 connection for statement preparation.

    Args:
        connection: The DB-API connection. It stays owned by the caller and is never closed here.
        statement_config: Statement configuration, defaults to :data:`~sqlbind.config.default_statement_config`.
    """

    __slots__ = ("_parameter_style", "connection", "statement_config")

    def __init__(self, connection: Any, statement_config: Optional[StatementConfig] = None) -> None:
        self.connection = connection
        self.statement_config = statement_config or default_statement_config
        self._parameter_style = self.statement_config.parameter_style or self._detect_parameter_style()

    def _detect_parameter_style(self) -> ParameterStyle:
        paramstyle = _driver_paramstyle(self.connection)
        if paramstyle is None:
            logger.debug("No DB-API paramstyle found for %s, using qmark", self.driver_name)
            return ParameterStyle.QMARK
        style = PARAMSTYLE_MAP.get(paramstyle)
        if style is None:
            msg = f"Unsupported DB-API paramstyle {paramstyle!r} for driver {self.driver_name}"
            raise ImproperConfigurationError(msg)
        return style

    @property
    def driver_name(self) -> str:
        connection_type = type(self.connection)
        return f"{connection_type.__module__}.{connection_type.__qualname__}"

    @property
    def parameter_style(self) -> ParameterStyle:
        return self._parameter_style

    def prepare(
        self,
        sql: str,
        parameter_count: int,
        *,
        return_generated_keys: bool = False,
        forward_only: bool = False,
        read_only: bool = False,
    ) -> PreparedStatement:
        return PreparedStatement(
            self.connection,
            sql,
            parameter_count,
            return_generated_keys=return_generated_keys,
            forward_only=forward_only,
            read_only=read_only,
            streaming_fetch_size=self.statement_config.streaming_fetch_size,
        )

    def __repr__(self) -> str:
        return f"DBAPIConnection(driver={self.driver_name!r}, parameter_style={self._parameter_style!s})"


def ensure_connection(connection: Any, statement_config: Optional[StatementConfig] = None) -> ConnectionProtocol:
    """Wrap a raw DB-API connection unless it already implements the protocol."""
    if isinstance(connection, ConnectionProtocol):
        return connection
    return DBAPIConnection(connection, statement_config)
