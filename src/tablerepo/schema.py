"""
Column type introspection.

Looks up the native type of a single column through the dialect's metadata
query and resolves it against the dialect's type catalog. Nothing is cached:
every call runs the query again, so schema changes are picked up immediately.

Introspection fails open. A missing column and any engine or configuration
error both produce an UNKNOWN ColumnTypeInfo, which makes the caller bind the
raw value untyped instead of failing the operation.
"""
import logging
from collections.abc import Callable
from contextlib import AbstractContextManager

import sqlalchemy as sa
from tablerepo.adapters.type_mapping import resolve_column_info
from tablerepo.dialects import Dialect
from tablerepo.exceptions import DatabaseError
from tablerepo.types import ColumnTypeInfo

logger = logging.getLogger(__name__)

# Opens a fresh connection scope each time it is called
ScopeFactory = Callable[[], AbstractContextManager[sa.Connection]]


def resolve_column_type(scope: ScopeFactory, dialect: Dialect, table: str,
                        schema: str | None, column: str) -> ColumnTypeInfo:
    """Resolve the semantic type of one column.

    Args:
        scope: Factory opening the connection used for the metadata query
        dialect: Dialect providing the metadata query and type catalog
        table: Unquoted table name
        schema: Unquoted schema name, dialect default when empty
        column: Unquoted column name

    Returns
        ColumnTypeInfo; UNKNOWN when the column is not found or the lookup fails
    """
    params = {'schema': dialect.effective_schema(schema), 'table': table, 'column': column}
    try:
        with scope() as cn:
            row = cn.execute(sa.text(dialect.column_type_sql), params).first()
    except (sa.exc.SQLAlchemyError, DatabaseError) as exc:
        logger.warning(f'Type lookup failed for {dialect.name} column {table}.{column}, '
                       f'binding untyped: {exc}')
        return ColumnTypeInfo.unknown()

    if row is None:
        logger.debug(f'No metadata for {dialect.name} column {params}')
        return ColumnTypeInfo.unknown()

    data = row._mapping
    info = resolve_column_info(dialect, data['native_type'], data['alt_type'], data['max_length'])
    logger.debug(f'Resolved {table}.{column} as {info.semantic_type.value} ({info.native_type})')
    return info
