"""
Connection handling with SQLAlchemy.

This module provides:
1. The `ConnectionProvider` protocol supplying connection strings
2. Engine creation and management through a thread-safe registry
3. The `connection_scope()` context manager used for every statement

Engines use `NullPool`, so a connection is opened for each scope and closed
when the scope exits; the registry only avoids re-creating engine objects.
"""
import atexit
import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import fields, replace
from typing import Any, Protocol, runtime_checkable

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool
from tablerepo.dialects import Dialect, get_dialect, get_dialect_for_url
from tablerepo.dialects.sqlite import register_type_adapters
from tablerepo.exceptions import ConfigurationError
from tablerepo.options import RepositoryOptions

__all__ = [
    'ConnectionProvider',
    'StaticConnectionProvider',
    'as_provider',
    'resolve_options',
    'resolve_dialect',
    'get_engine',
    'connection_scope',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()

# Name of the connect-timeout argument for each driver
_TIMEOUT_ARGS = {
    'postgresql': 'connect_timeout',
    'mysql': 'connect_timeout',
    'mssql': 'timeout',
    'sqlite': 'timeout',
    }


@runtime_checkable
class ConnectionProvider(Protocol):
    """Supplies the SQLAlchemy connection URL for the configured engine.
    """

    def get_connection_string(self) -> str: ...


class StaticConnectionProvider:
    """Provider returning a fixed connection string.
    """

    def __init__(self, connection_string: str) -> None:
        self.connection_string = connection_string

    def get_connection_string(self) -> str:
        return self.connection_string

    def __repr__(self) -> str:
        return f'StaticConnectionProvider({_redact(self.connection_string)!r})'


def as_provider(source: ConnectionProvider | str) -> ConnectionProvider:
    """Accept a provider or a plain connection string.
    """
    if isinstance(source, str):
        return StaticConnectionProvider(source)
    if isinstance(source, ConnectionProvider):
        return source
    raise ConfigurationError(f'Expected a connection provider or string, got {type(source).__name__}')


def resolve_options(options: RepositoryOptions | dict[str, Any] | None = None,
                    **kw: Any) -> RepositoryOptions:
    """Build RepositoryOptions from an options object, a dict or keywords.

    Keyword arguments override values from `options`.
    """
    if isinstance(options, RepositoryOptions):
        known = {f.name for f in fields(options)}
        overrides = {k: v for k, v in kw.items() if k in known}
        return replace(options, **overrides) if overrides else options
    merged = dict(options or {})
    merged.update(kw)
    known = {f.name for f in fields(RepositoryOptions)}
    unknown = set(merged) - known
    if unknown:
        raise ConfigurationError(f'Unknown repository options: {sorted(unknown)}')
    try:
        return RepositoryOptions(**merged)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


def get_connection_string(provider: ConnectionProvider) -> str:
    """Fetch the connection string from a provider.

    Raises
        ConfigurationError: if the provider fails or returns an empty string
    """
    try:
        connection_string = provider.get_connection_string()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(f'Connection provider failed: {exc}') from exc
    if not connection_string or not str(connection_string).strip():
        raise ConfigurationError('Connection string is empty')
    return str(connection_string).strip()


def resolve_dialect(provider: ConnectionProvider, options: RepositoryOptions) -> Dialect:
    """Pick the dialect from the options, else from the connection URL.
    """
    if options.drivername:
        return get_dialect(options.drivername)
    return get_dialect_for_url(get_connection_string(provider))


def _redact(connection_string: str) -> str:
    try:
        return sa.engine.make_url(connection_string).render_as_string(hide_password=True)
    except sa.exc.ArgumentError:
        return '<unparseable url>'


def _engine_kwargs(url: sa.URL, options: RepositoryOptions) -> dict[str, Any]:
    backend = url.get_backend_name()
    connect_args: dict[str, Any] = {}
    if backend == 'sqlite':
        register_type_adapters()
        connect_args['detect_types'] = sqlite3.PARSE_DECLTYPES
    if options.timeout and backend in _TIMEOUT_ARGS:
        connect_args[_TIMEOUT_ARGS[backend]] = options.timeout
    return {'echo': options.echo, 'poolclass': NullPool, 'connect_args': connect_args}


def get_engine(connection_string: str, options: RepositoryOptions) -> Engine:
    """Get or create a SQLAlchemy engine for a connection string.
    """
    key = f'{connection_string}_{options.timeout}_{options.echo}'

    with _engine_registry_lock:
        if key in _engine_registry:
            return _engine_registry[key]

        try:
            url = sa.engine.make_url(connection_string)
            engine = sa.create_engine(url, **_engine_kwargs(url, options))
        except (sa.exc.ArgumentError, sa.exc.NoSuchModuleError) as exc:
            raise ConfigurationError(f'Invalid connection string {_redact(connection_string)}: {exc}') from exc

        _engine_registry[key] = engine
        logger.debug(f'Created new engine for {_redact(connection_string)}')

        return engine


@contextmanager
def connection_scope(provider: ConnectionProvider, options: RepositoryOptions,
                     begin: bool = False) -> Iterator[sa.Connection]:
    """Open a connection for the duration of a block.

    With `begin`, the block runs in a transaction that commits on normal exit
    and rolls back if the block raises. Without it, the connection is closed
    without committing.

    Usage:
        with connection_scope(provider, options) as cn:
            cn.execute(sa.text('select 1'))
    """
    engine = get_engine(get_connection_string(provider), options)
    if begin:
        with engine.begin() as cn:
            yield cn
    else:
        with engine.connect() as cn:
            yield cn


def dispose_all_engines() -> None:
    """Dispose all engines in the registry.
    """
    with _engine_registry_lock:
        for engine in list(_engine_registry.values()):
            engine.dispose()
        _engine_registry.clear()
        logger.debug('All database engines disposed')


atexit.register(dispose_all_engines)
