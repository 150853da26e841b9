"""
Dialect registry for engine-specific SQL constants.
"""
import sqlalchemy as sa
from tablerepo.dialects.base import _DIALECT_REGISTRY
from tablerepo.dialects.base import Dialect as Dialect
from tablerepo.dialects.base import register_dialect as register_dialect
from tablerepo.dialects.mysql import MYSQL as MYSQL
from tablerepo.dialects.postgres import POSTGRES as POSTGRES
from tablerepo.dialects.sqlite import SQLITE as SQLITE
from tablerepo.dialects.sqlserver import SQLSERVER as SQLSERVER
from tablerepo.exceptions import ConfigurationError


def _validate_dialect(name: str) -> None:
    """Raise ValueError if dialect is not registered."""
    if name not in _DIALECT_REGISTRY:
        available = get_available_dialects()
        raise ValueError(f'Unsupported dialect: {name}. Available: {available}')


def get_dialect(name: str) -> Dialect:
    """Get the registered dialect for a name or alias.
    """
    name = name.lower().split('+')[0]
    _validate_dialect(name)
    return _DIALECT_REGISTRY[name]


def get_dialect_for_url(connection_string: str) -> Dialect:
    """Get the dialect for a SQLAlchemy connection URL.

    The backend name is taken from the URL's driver name, so
    ``mssql+pyodbc://...`` and ``mariadb+pymysql://...`` both resolve.
    """
    try:
        url = sa.engine.make_url(connection_string)
    except sa.exc.ArgumentError as exc:
        raise ConfigurationError(f'Could not parse connection string: {exc}') from exc
    try:
        return get_dialect(url.get_backend_name())
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


def get_available_dialects() -> list[str]:
    """Return list of registered dialect names (aliases excluded)."""
    return sorted({d.name for d in _DIALECT_REGISTRY.values()})


def is_supported_dialect(name: str) -> bool:
    """Check if a dialect name or alias is supported."""
    return name.lower().split('+')[0] in _DIALECT_REGISTRY
