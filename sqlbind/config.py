"""Statement configuration for sqlbind."""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Final, Optional

if TYPE_CHECKING:
    from sqlbind.parameters.types import ParameterStyle

__all__ = (
    "DEFAULT_FETCH_SIZE",
    "DEFAULT_PARSE_CACHE_SIZE",
    "MYSQL_STREAMING_FETCH_SIZE",
    "StatementConfig",
    "default_statement_config",
)

DEFAULT_FETCH_SIZE: Final = 100
DEFAULT_PARSE_CACHE_SIZE: Final = 1000
# MySQL drivers only stream rows when handed this exact fetch size.
MYSQL_STREAMING_FETCH_SIZE: Final = -(2**31)

STATEMENT_CONFIG_SLOTS: Final = (
    "fetch_size",
    "parameter_style",
    "parse_cache_size",
    "streaming_driver_markers",
    "streaming_fetch_size",
)


class StatementConfig:
    """Configuration shared by every statement compiled against a connection.

    Args:
        parameter_style: Positional marker style. ``None`` derives it from the
            DB-API module's ``paramstyle``.
        fetch_size: Default number of rows pulled per round trip when streaming.
        streaming_fetch_size: Fetch size used for drivers matching ``streaming_driver_markers``.
        streaming_driver_markers: Lower case fragments of a driver name that
            require ``streaming_fetch_size`` to stream instead of buffering.
        parse_cache_size: Maximum number of parsed templates kept; 0 disables the cache.
    """

    __slots__ = STATEMENT_CONFIG_SLOTS

    def __init__(
        self,
        parameter_style: "Optional[ParameterStyle]" = None,
        fetch_size: int = DEFAULT_FETCH_SIZE,
        streaming_fetch_size: int = MYSQL_STREAMING_FETCH_SIZE,
        streaming_driver_markers: "Sequence[str]" = ("mysql",),
        parse_cache_size: int = DEFAULT_PARSE_CACHE_SIZE,
    ) -> None:
        self.parameter_style = parameter_style
        self.fetch_size = fetch_size
        self.streaming_fetch_size = streaming_fetch_size
        self.streaming_driver_markers = tuple(marker.lower() for marker in streaming_driver_markers)
        self.parse_cache_size = parse_cache_size

    def fetch_size_for(self, driver_name: str, requested: Optional[int] = None) -> int:
        """Pick the fetch size to request from a driver when streaming.

        Args:
            driver_name: Driver identification text taken from the connection.
            requested: Caller supplied fetch size, falls back to ``fetch_size``.

        Returns:
            ``streaming_fetch_size`` for drivers that ignore finite fetch sizes,
            otherwise the requested size.
        """
        lowered = driver_name.lower()
        if any(marker in lowered for marker in self.streaming_driver_markers):
            return self.streaming_fetch_size
        return self.fetch_size if requested is None else requested

    def replace(self, **kwargs: Any) -> "StatementConfig":
        """Immutable update pattern.

        Args:
            **kwargs: Attributes to update

        Returns:
            New StatementConfig instance with updated attributes
        """
        for key in kwargs:
            if key not in STATEMENT_CONFIG_SLOTS:
                msg = f"{key!r} is not a field in {type(self).__name__}"
                raise TypeError(msg)

        current_kwargs = {slot: getattr(self, slot) for slot in STATEMENT_CONFIG_SLOTS}
        current_kwargs.update(kwargs)
        return type(self)(**current_kwargs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StatementConfig):
            return False
        return all(getattr(self, slot) == getattr(other, slot) for slot in STATEMENT_CONFIG_SLOTS)

    def __hash__(self) -> int:
        return hash(tuple(getattr(self, slot) for slot in STATEMENT_CONFIG_SLOTS))

    def __repr__(self) -> str:
        fields = ", ".join(f"{slot}={getattr(self, slot)!r}" for slot in STATEMENT_CONFIG_SLOTS)
        return f"StatementConfig({fields})"


default_statement_config = StatementConfig()
