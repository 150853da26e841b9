"""
Repository executor: CRUD over arbitrary tables.

One `Repository` serves every supported engine. The engine-specific parts
(quoting, schema qualification, row-cap syntax, metadata query, type catalog)
come from the Dialect picked for the connection, so each operation is written
once:

    1. validate the identifiers and payload
    2. resolve the type of every referenced column, one connection per column
    3. coerce the raw values and build the statement
    4. run the statement in its own connection scope

Every call opens and closes its own connections; nothing is shared between
calls, and nothing about the schema is remembered.

Usage:
    repo = Repository('postgresql+psycopg://app@db/sales', hasher=BcryptHasher())
    repo.find_by_key('orders', None, 'created_at', '2024-03-15')
    repo.create('accounts', None, {'username': 'alice', 'password': 'secret'}, 'password')
"""
import logging
from collections.abc import Iterator, Mapping
from contextlib import AbstractContextManager, contextmanager
from typing import Any

import sqlalchemy as sa
from tablerepo.adapters.type_conversion import bind_value, extract_date
from tablerepo.adapters.type_conversion import needs_date_cast
from tablerepo.connection import ConnectionProvider, as_provider
from tablerepo.connection import connection_scope, resolve_dialect
from tablerepo.connection import resolve_options
from tablerepo.diagnostics import DiagnosticInfo, probe
from tablerepo.dialects import Dialect
from tablerepo.exceptions import EngineError, ProviderError, ValidationError
from tablerepo.exceptions import engine_message
from tablerepo.options import RepositoryOptions
from tablerepo.row import Record
from tablerepo.schema import resolve_column_type
from tablerepo.security import SecretHasher, apply_sensitive_fields
from tablerepo.sql import Operation, Predicate, Statement, build_statement
from tablerepo.types import BoundParameter, ColumnTypeInfo, SemanticType

logger = logging.getLogger(__name__)

__all__ = ['Repository']


def _require(value: Any, name: str) -> str:
    """Return a non-blank string argument or raise ValidationError.
    """
    if value is None or not str(value).strip():
        raise ValidationError(f'{name} must not be empty')
    return value if isinstance(value, str) else str(value)


class Repository:
    """Dialect-agnostic CRUD over tables named at call time.

    Args:
        provider: ConnectionProvider, or a SQLAlchemy connection URL
        hasher: SecretHasher used for sensitive fields; without one, requests
            to hash fields raise ConfigurationError
        options: RepositoryOptions or dict of option values
        **kw: Option values overriding `options`
    """

    def __init__(self, provider: ConnectionProvider | str,
                 hasher: SecretHasher | None = None,
                 options: RepositoryOptions | dict[str, Any] | None = None,
                 **kw: Any) -> None:
        self.provider = as_provider(provider)
        self.hasher = hasher
        self.options = resolve_options(options, **kw)
        self._dialect: Dialect | None = None

    def __repr__(self) -> str:
        return f'Repository({self.provider!r}, drivername={self.options.drivername!r})'

    @property
    def dialect(self) -> Dialect:
        """Dialect for the configured engine, resolved on first use.
        """
        if self._dialect is None:
            self._dialect = resolve_dialect(self.provider, self.options)
        return self._dialect

    # =========================================================================
    # Connection scopes
    # =========================================================================

    def _scope(self, begin: bool = False) -> AbstractContextManager[sa.Connection]:
        return connection_scope(self.provider, self.options, begin=begin)

    @contextmanager
    def _engine_errors(self, action: str, table: str | None = None,
                       schema: str | None = None) -> Iterator[None]:
        """Wrap engine failures as ProviderError naming the target table.
        """
        try:
            yield
        except EngineError as exc:
            detail = engine_message(exc)
            target = f' on {self.dialect.qualify(table, schema)}' if table else ''
            raise ProviderError(f'{self.dialect.display_name} error during {action}{target}: {detail}',
                                table=table, schema=schema, detail=detail) from exc

    def _fetch(self, statement: Statement, action: str, table: str,
               schema: str | None) -> list[Record]:
        with self._engine_errors(action, table, schema), self._scope() as cn:
            result = cn.execute(statement.to_clause())
            records = [Record.from_row(row) for row in result]
        logger.debug(f'{action} on {table} returned {len(records)} rows')
        return records

    def _write(self, statement: Statement, action: str, table: str,
               schema: str | None) -> int:
        with self._engine_errors(action, table, schema), self._scope(begin=True) as cn:
            rowcount = cn.execute(statement.to_clause()).rowcount
        logger.debug(f'{action} on {table} affected {rowcount} rows')
        return rowcount

    # =========================================================================
    # Type resolution and binding
    # =========================================================================

    def column_type(self, table: str, schema: str | None, column: str) -> ColumnTypeInfo:
        """Resolve one column's type in its own connection scope.
        """
        return resolve_column_type(self._scope, self.dialect, table, schema, column)

    def _bind_fields(self, table: str, schema: str | None,
                     fields: Mapping[str, Any]) -> list[BoundParameter]:
        params = []
        for column, value in fields.items():
            _require(column, 'Field name')
            params.append(bind_value(column, value, self.column_type(table, schema, column)))
        return params

    def _key_predicate(self, table: str, schema: str | None, key_column: str,
                       key_value: Any, date_aware: bool = False) -> Predicate:
        """Build the key filter, comparing calendar dates when a bare date
        targets a timestamp column and `date_aware` is set.

        Raises
            ConversionError: if the date-only value cannot be parsed as a date
        """
        info = self.column_type(table, schema, key_column)
        if date_aware and needs_date_cast(info.semantic_type, key_value):
            parameter = BoundParameter(name=key_column, semantic_type=SemanticType.DATE,
                                       value=extract_date(key_value))
            logger.debug(f'Comparing {table}.{key_column} by date for {key_value!r}')
            return Predicate(key_column, parameter, date_cast=True)
        return Predicate(key_column, bind_value(key_column, key_value, info))

    def _hash_sensitive(self, fields: Mapping[str, Any],
                        sensitive_fields: str | None) -> dict[str, Any]:
        return apply_sensitive_fields(fields, sensitive_fields, self.hasher,
                                      self.options.secret_cost)

    # =========================================================================
    # Operations
    # =========================================================================

    def list_rows(self, table: str, schema: str | None = None,
                  limit: int | None = None) -> list[Record]:
        """Read up to `limit` rows of a table (default: options.default_limit).
        """
        _require(table, 'Table name')
        limit = self.options.default_limit if limit is None else limit
        statement = build_statement(Operation.SELECT, self.dialect, table, schema, limit=limit)
        return self._fetch(statement, 'list_rows', table, schema)

    def find_by_key(self, table: str, schema: str | None, key_column: str,
                    key_value: Any) -> list[Record]:
        """Read every row whose key column equals `key_value`.

        A bare date (``'2024-03-15'``) against a timestamp column matches every
        row on that calendar day.

        Raises
            ConversionError: if such a date-only value is not a valid date
        """
        _require(table, 'Table name')
        _require(key_column, 'Key column')
        _require(key_value, 'Key value')
        predicate = self._key_predicate(table, schema, key_column, key_value, date_aware=True)
        statement = build_statement(Operation.SELECT_BY_KEY, self.dialect, table, schema,
                                    predicate=predicate)
        return self._fetch(statement, 'find_by_key', table, schema)

    def create(self, table: str, schema: str | None, fields: Mapping[str, Any],
               sensitive_fields: str | None = None) -> bool:
        """Insert one row. Returns True when a row was written.
        """
        _require(table, 'Table name')
        if not fields:
            raise ValidationError('Fields must not be empty')
        values = self._bind_fields(table, schema, self._hash_sensitive(fields, sensitive_fields))
        statement = build_statement(Operation.INSERT, self.dialect, table, schema, values=values)
        return self._write(statement, 'create', table, schema) > 0

    def update(self, table: str, schema: str | None, key_column: str, key_value: Any,
               fields: Mapping[str, Any], sensitive_fields: str | None = None) -> int:
        """Update the rows matching the key. Returns the affected row count.
        """
        _require(table, 'Table name')
        _require(key_column, 'Key column')
        _require(key_value, 'Key value')
        if not fields:
            raise ValidationError('Fields must not be empty')
        values = self._bind_fields(table, schema, self._hash_sensitive(fields, sensitive_fields))
        predicate = self._key_predicate(table, schema, key_column, key_value)
        statement = build_statement(Operation.UPDATE, self.dialect, table, schema,
                                    values=values, predicate=predicate)
        return self._write(statement, 'update', table, schema)

    def delete(self, table: str, schema: str | None, key_column: str, key_value: Any) -> int:
        """Delete the rows matching the key. Returns the affected row count.
        """
        _require(table, 'Table name')
        _require(key_column, 'Key column')
        _require(key_value, 'Key value')
        predicate = self._key_predicate(table, schema, key_column, key_value)
        statement = build_statement(Operation.DELETE, self.dialect, table, schema,
                                    predicate=predicate)
        return self._write(statement, 'delete', table, schema)

    def get_secret_hash(self, table: str, schema: str | None, user_column: str,
                        secret_column: str, user_value: Any) -> str | None:
        """Read the stored secret hash for a user, None when there is no such user.
        """
        _require(table, 'Table name')
        _require(user_column, 'User column')
        _require(secret_column, 'Secret column')
        _require(user_value, 'User value')
        predicate = self._key_predicate(table, schema, user_column, user_value)
        statement = build_statement(Operation.SELECT_COLUMN, self.dialect, table, schema,
                                    columns=(secret_column,), predicate=predicate)
        with self._engine_errors('get_secret_hash', table, schema), self._scope() as cn:
            value = cn.execute(statement.to_clause()).scalar()
        return None if value is None else str(value)

    def diagnose(self) -> DiagnosticInfo:
        """Report server identity and uptime for the configured connection.
        """
        with self._engine_errors('diagnose'):
            return probe(self._scope, self.dialect)
