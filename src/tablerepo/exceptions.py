"""
Repository-specific exception classes.
"""
import sqlalchemy as sa


class DatabaseError(Exception):
    """Base class for all tablerepo errors.
    """


class ConfigurationError(DatabaseError):
    """Missing or unusable configuration (connection string, hasher, dialect).
    """


class ValidationError(DatabaseError):
    """Error in input validation.
    """


class ConversionError(DatabaseError):
    """A value could not be converted where no fallback is safe.
    """


class ProviderError(DatabaseError):
    """The engine rejected a statement or the connection failed.

    Carries the target table and schema along with the engine's own message.
    """

    def __init__(self, message: str, table: str | None = None,
                 schema: str | None = None, detail: str | None = None) -> None:
        super().__init__(message)
        self.table = table
        self.schema = schema
        self.detail = detail


# Errors raised by SQLAlchemy or by the DBAPI drivers it wraps
EngineError = (
    sa.exc.SQLAlchemyError,
    )


def engine_message(exc: BaseException) -> str:
    """Return the driver's own diagnostic message for a SQLAlchemy error.
    """
    orig = getattr(exc, 'orig', None)
    if orig is not None:
        return str(orig).strip()
    return str(exc).strip()
