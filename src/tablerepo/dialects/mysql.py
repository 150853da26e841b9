"""
MySQL / MariaDB dialect.

- Backtick identifiers; a schema is a database, so there is no default schema
  prefix and metadata lookups fall back to ``DATABASE()``
- Trailing ``LIMIT`` row cap
- MariaDB's uuid type takes the dashed text form, so uuids are bound as text
- Column types from ``information_schema.columns``
- Uptime read with ``SHOW GLOBAL STATUS`` (available on MariaDB 10.4 where
  ``performance_schema.global_status`` may be disabled)
"""
from tablerepo.dialects.base import LIMIT, Dialect, build_catalog
from tablerepo.dialects.base import register_dialect
from tablerepo.types import SemanticType, UuidText

MYSQL_TYPES = build_catalog(
    (SemanticType.INTEGER64, {'bigint'}),
    (SemanticType.INTEGER32, {'int', 'integer', 'mediumint'}),
    (SemanticType.INTEGER16, {'smallint', 'year'}),
    (SemanticType.INTEGER8, {'tinyint'}),
    (SemanticType.DECIMAL, {'decimal', 'numeric', 'dec', 'fixed'}),
    (SemanticType.FLOAT64, {'double', 'double precision', 'real'}),
    (SemanticType.FLOAT32, {'float'}),
    (SemanticType.TEXT, {'varchar', 'char', 'text', 'tinytext', 'mediumtext',
                         'longtext', 'enum', 'set'}),
    (SemanticType.BOOLEAN, {'boolean', 'bool', 'bit', 'tinyint(1)'}),
    (SemanticType.UUID, {'uuid'}),
    (SemanticType.DATE, {'date'}),
    (SemanticType.DATETIME, {'datetime', 'timestamp'}),
    (SemanticType.TIME, {'time'}),
    (SemanticType.BINARY, {'binary', 'varbinary', 'blob', 'tinyblob',
                           'mediumblob', 'longblob'}),
    (SemanticType.JSON, {'json'}),
    )

COLUMN_TYPE_SQL = """
select
    c.data_type as native_type,
    c.column_type as alt_type,
    c.character_maximum_length as max_length
from information_schema.columns c
where
    c.table_schema = coalesce(:schema, database())
    and c.table_name = :table
    and c.column_name = :column
"""

DIAGNOSTICS_SQL = """
select
    database() as database_name,
    schema() as schema_name,
    version() as version,
    @@hostname as server,
    @@port as port,
    @@version_comment as server_type,
    user() as user_name,
    connection_id() as connection_id
"""

UPTIME_SQL = "show global status like 'Uptime'"

MYSQL = register_dialect(Dialect(
    name='mysql',
    display_name='MySQL',
    quote_open='`',
    quote_close='`',
    default_schema=None,
    limit_style=LIMIT,
    column_type_sql=COLUMN_TYPE_SQL,
    type_catalog=MYSQL_TYPES,
    diagnostics_sql=DIAGNOSTICS_SQL,
    uptime_sql=UPTIME_SQL,
    bind_types={SemanticType.UUID: UuidText()},
    aliases=('mariadb',),
    ))
