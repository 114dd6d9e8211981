from typing import Any, Optional

__all__ = (
    "ExtraParameterError",
    "IllegalStateError",
    "ImproperConfigurationError",
    "MalformedPlaceholderError",
    "MissingParameterError",
    "NotFoundError",
    "ParameterError",
    "RepositoryError",
    "SQLBindError",
    "SQLParsingError",
    "TupleArityMismatchError",
    "UnknownParameterError",
)


class SQLBindError(Exception):
    """Base exception class from which all sqlbind exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLBindError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class ImproperConfigurationError(SQLBindError):
    """Improper Configuration error.

    Raised when a connection or statement configuration cannot be used, for
    example an unsupported DB-API ``paramstyle``.
    """


class SQLParsingError(SQLBindError):
    """Issues parsing SQL templates."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues parsing SQL template."
        super().__init__(message)


class MalformedPlaceholderError(SQLParsingError):
    """Raised when a ``{name}`` placeholder is unterminated, empty or contains invalid characters."""

    position: int
    template: str

    def __init__(self, message: str, template: str, position: int) -> None:
        super().__init__(f"{message} at position {position}")
        self.template = template
        self.position = position


class IllegalStateError(SQLBindError):
    """Raised when an operation is invoked in a state that does not allow it.

    This signals a programming error, such as declaring a list expansion after
    parameters were bound or pulling from an exhausted row iterator.
    """


# -- SQL Parameter Errors --
class ParameterError(SQLBindError):
    """Base class for parameter-related errors."""

    sql: Optional[str]

    def __init__(self, message: str, sql: Optional[str] = None) -> None:
        """Initialize with optional SQL context."""
        detail_message = message
        if sql:
            detail_message = f"{message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.sql = sql


class UnknownParameterError(ParameterError):
    """Raised when a bind references a name that does not appear in the statement."""


class MissingParameterError(ParameterError):
    """Raised when required parameters are missing."""


class ExtraParameterError(ParameterError):
    """Raised when extra parameters are provided."""


class TupleArityMismatchError(ParameterError):
    """Raised when the number of tuple records differs from the declared tuple count."""


class RepositoryError(SQLBindError):
    """Base repository exception type."""


class NotFoundError(RepositoryError):
    """A single database result was required but none was found."""
