"""
PostgreSQL dialect.

- Double-quoted identifiers, default schema ``public``
- Trailing ``LIMIT`` row cap
- Column types from ``information_schema.columns``; ``udt_name`` is used as a
  fallback for ``USER-DEFINED`` and array columns
- Server metadata from the system information functions
"""
from tablerepo.dialects.base import LIMIT, Dialect, build_catalog
from tablerepo.dialects.base import register_dialect
from tablerepo.types import SemanticType

POSTGRES_TYPES = build_catalog(
    (SemanticType.INTEGER64, {'bigint', 'int8', 'bigserial', 'serial8'}),
    (SemanticType.INTEGER32, {'integer', 'int', 'int4', 'serial', 'serial4'}),
    (SemanticType.INTEGER16, {'smallint', 'int2', 'smallserial', 'serial2'}),
    (SemanticType.DECIMAL, {'numeric', 'decimal'}),
    (SemanticType.FLOAT32, {'real', 'float4'}),
    (SemanticType.FLOAT64, {'double precision', 'float8'}),
    (SemanticType.TEXT, {'character varying', 'varchar', 'character', 'char',
                         'bpchar', 'text', 'citext', 'name', '"char"'}),
    (SemanticType.BOOLEAN, {'boolean', 'bool'}),
    (SemanticType.UUID, {'uuid'}),
    (SemanticType.DATE, {'date'}),
    (SemanticType.DATETIME, {'timestamp without time zone', 'timestamp'}),
    (SemanticType.DATETIME_WITH_OFFSET, {'timestamp with time zone', 'timestamptz'}),
    (SemanticType.TIME, {'time without time zone', 'time',
                         'time with time zone', 'timetz'}),
    (SemanticType.BINARY, {'bytea'}),
    (SemanticType.JSON, {'json', 'jsonb'}),
    )

COLUMN_TYPE_SQL = """
select
    c.data_type as native_type,
    c.udt_name as alt_type,
    c.character_maximum_length as max_length
from information_schema.columns c
where
    c.table_schema = :schema
    and c.table_name = :table
    and c.column_name = :column
"""

DIAGNOSTICS_SQL = """
select
    current_database() as database_name,
    current_schema() as schema_name,
    version() as version,
    coalesce(host(inet_server_addr()), 'localhost') as server,
    inet_server_port() as port,
    current_user as user_name,
    pg_backend_pid() as connection_id,
    pg_postmaster_start_time() as start_time,
    extract(epoch from (now() - pg_postmaster_start_time())) as uptime_seconds
"""

POSTGRES = register_dialect(Dialect(
    name='postgresql',
    display_name='PostgreSQL',
    quote_open='"',
    quote_close='"',
    default_schema='public',
    limit_style=LIMIT,
    column_type_sql=COLUMN_TYPE_SQL,
    type_catalog=POSTGRES_TYPES,
    diagnostics_sql=DIAGNOSTICS_SQL,
    aliases=('postgres',),
    ))
