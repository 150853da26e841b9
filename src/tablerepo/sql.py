"""
Statement building for the repository operations.

Every statement is built from the dialect descriptor: identifiers are quoted
with the dialect's quote characters, the table is schema-qualified only when
the schema differs from the dialect default, and the row cap uses the
dialect's LIMIT or TOP syntax. Values never appear in SQL text; each one is
carried by a named bind parameter (``p0``, ``p1``, ... for data values,
``key`` for the predicate and ``limit`` for the row cap).

Main entry points:
- `build_statement(operation, dialect, table, ...)` - SQL text plus parameters
- `Statement.to_clause()` - SQLAlchemy TextClause with typed bind parameters

Usage:
    stmt = build_statement(Operation.SELECT, POSTGRES, 'users', limit=100)
    stmt.sql         # 'SELECT * FROM "users" LIMIT :limit'
    cn.execute(stmt.to_clause())
"""
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

import sqlalchemy as sa
from tablerepo.dialects import Dialect
from tablerepo.dialects.base import TOP
from tablerepo.exceptions import ValidationError
from tablerepo.types import BoundParameter, SemanticType

logger = logging.getLogger(__name__)

KEY_PARAM = 'key'
LIMIT_PARAM = 'limit'

# =============================================================================
# Data Structures
# =============================================================================


class Operation(Enum):
    """Statement shapes produced by the builder."""
    SELECT = 'select'
    SELECT_BY_KEY = 'select_by_key'
    SELECT_COLUMN = 'select_column'
    INSERT = 'insert'
    UPDATE = 'update'
    DELETE = 'delete'


@dataclass(frozen=True, slots=True)
class Predicate:
    """Equality filter on a single column.

    With `date_cast`, the column is truncated to a date before comparison so
    a date-only value matches every timestamp on that day.
    """
    column: str
    parameter: BoundParameter
    date_cast: bool = False


@dataclass(frozen=True)
class Statement:
    """Parameterized SQL ready for execution."""
    sql: str
    parameters: dict[str, BoundParameter] = field(default_factory=dict)
    dialect: Dialect | None = None

    def to_clause(self) -> sa.TextClause:
        """Build a TextClause binding every parameter by name.

        Parameters whose value matches their semantic type are bound with the
        corresponding SQLAlchemy type, or the dialect's override for that
        type; the rest are bound as NullType.
        """
        binds = [sa.bindparam(name, param.value, type_=self._bind_type(param))
                 for name, param in self.parameters.items()]
        return sa.text(self.sql).bindparams(*binds)

    def _bind_type(self, param: BoundParameter) -> sa.types.TypeEngine:
        if self.dialect is None:
            return param.sql_type
        return self.dialect.bind_type(param)

    @property
    def values(self) -> dict[str, object]:
        return {name: param.value for name, param in self.parameters.items()}


# =============================================================================
# Identifier Rendering
# =============================================================================

def _escape_colons(sql_fragment: str) -> str:
    """Keep colons in identifiers from being read as bind parameters by text().
    """
    return sql_fragment.replace(':', r'\:')


def quote_identifier(dialect: Dialect, identifier: str) -> str:
    """Quote a column name for use in a statement.
    """
    return _escape_colons(dialect.quote_identifier(identifier))


def qualify_table(dialect: Dialect, table: str, schema: str | None = None) -> str:
    """Quote and schema-qualify a table name for use in a statement.
    """
    return _escape_colons(dialect.qualify(table, schema))


def _validate_limit(limit: object) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationError(f'Row limit must be a positive integer, got {limit!r}')
    return limit


def _limit_parameter(limit: int) -> BoundParameter:
    return BoundParameter(name=LIMIT_PARAM, semantic_type=SemanticType.INTEGER64, value=limit)


def _render_select(dialect: Dialect, select_list: str, source: str,
                   where: str | None, limit: int | None) -> str:
    top = f'TOP (:{LIMIT_PARAM}) ' if limit is not None and dialect.limit_style == TOP else ''
    sql = f'SELECT {top}{select_list} FROM {source}'
    if where:
        sql = f'{sql} WHERE {where}'
    if limit is not None and dialect.limit_style != TOP:
        sql = f'{sql} LIMIT :{LIMIT_PARAM}'
    return sql


def _render_predicate(dialect: Dialect, predicate: Predicate) -> str:
    column = quote_identifier(dialect, predicate.column)
    if predicate.date_cast:
        column = dialect.cast_to_date(column)
    return f'{column} = :{KEY_PARAM}'


# =============================================================================
# Statement Builder
# =============================================================================

def build_statement(operation: Operation, dialect: Dialect, table: str,
                    schema: str | None = None, *,
                    columns: Sequence[str] = (),
                    values: Sequence[BoundParameter] = (),
                    predicate: Predicate | None = None,
                    limit: int | None = None) -> Statement:
    """Build the SQL text and bind parameters for one repository operation.

    Args:
        operation: Statement shape to build
        dialect: Dialect supplying quoting, qualification and limit syntax
        table: Unquoted table name
        schema: Unquoted schema name, omitted from the SQL when empty or default
        columns: Selected column for SELECT_COLUMN
        values: Data values for INSERT and UPDATE, named by their target column
        predicate: Key filter for SELECT_BY_KEY, SELECT_COLUMN, UPDATE and DELETE
        limit: Row cap; required for SELECT, fixed at 1 for SELECT_COLUMN and
            optional for SELECT_BY_KEY

    Returns
        Statement with SQL text and parameters keyed by bind name

    Raises
        ValidationError: On a non-positive limit or a missing required input
    """
    if not table or not table.strip():
        raise ValidationError('Table name must not be empty')

    source = qualify_table(dialect, table, schema)
    params: dict[str, BoundParameter] = {}

    if operation in {Operation.SELECT_BY_KEY, Operation.SELECT_COLUMN,
                     Operation.UPDATE, Operation.DELETE}:
        if predicate is None:
            raise ValidationError(f'{operation.value} requires a key predicate')
        where = _render_predicate(dialect, predicate)
    else:
        where = None

    match operation:
        case Operation.SELECT:
            if limit is None:
                raise ValidationError('select requires a row limit')
            limit = _validate_limit(limit)
            sql = _render_select(dialect, '*', source, None, limit)
        case Operation.SELECT_BY_KEY:
            if limit is not None:
                limit = _validate_limit(limit)
            sql = _render_select(dialect, '*', source, where, limit)
        case Operation.SELECT_COLUMN:
            if len(columns) != 1:
                raise ValidationError('select_column requires exactly one column')
            limit = 1
            sql = _render_select(dialect, quote_identifier(dialect, columns[0]),
                                 source, where, limit)
        case Operation.INSERT:
            if not values:
                raise ValidationError('insert requires at least one value')
            names = ', '.join(quote_identifier(dialect, p.name) for p in values)
            placeholders = ', '.join(f':p{i}' for i in range(len(values)))
            sql = f'INSERT INTO {source} ({names}) VALUES ({placeholders})'
        case Operation.UPDATE:
            if not values:
                raise ValidationError('update requires at least one value')
            assignments = ', '.join(f'{quote_identifier(dialect, p.name)} = :p{i}'
                                    for i, p in enumerate(values))
            sql = f'UPDATE {source} SET {assignments} WHERE {where}'
        case Operation.DELETE:
            sql = f'DELETE FROM {source} WHERE {where}'
        case _:
            raise ValueError(f'Unsupported operation: {operation}')

    if operation in {Operation.INSERT, Operation.UPDATE}:
        params.update({f'p{i}': p for i, p in enumerate(values)})
    if where is not None:
        params[KEY_PARAM] = predicate.parameter
    if limit is not None and operation in {Operation.SELECT, Operation.SELECT_BY_KEY,
                                           Operation.SELECT_COLUMN}:
        params[LIMIT_PARAM] = _limit_parameter(limit)

    logger.debug(f'Built {operation.value} for {dialect.name}: {sql}')
    return Statement(sql=sql, parameters=params, dialect=dialect)
