"""
SQLite dialect.

Handles SQLite's differences from the server engines:
- Declared column types are free text, read from ``pragma_table_info``
- ``CAST(x AS DATE)`` yields a number in SQLite, so dates are truncated with
  the ``date()`` function instead
- The default schema is ``main``; attached databases act as schemas
- There is no server process, so diagnostics report no uptime
- Identifiers are quoted with backticks; SQLite reads a double-quoted name
  that matches no column as a string literal
- There is no uuid storage class, so uuids are bound as dashed text
"""
import datetime
import json
import sqlite3

import dateutil.parser
from tablerepo.dialects.base import LIMIT, Dialect, build_catalog
from tablerepo.dialects.base import register_dialect
from tablerepo.types import SemanticType, UuidText

SQLITE_TYPES = build_catalog(
    (SemanticType.INTEGER64, {'integer', 'int', 'bigint', 'int8', 'unsigned big int'}),
    (SemanticType.INTEGER32, {'mediumint', 'int4'}),
    (SemanticType.INTEGER16, {'smallint', 'int2'}),
    (SemanticType.INTEGER8, {'tinyint'}),
    (SemanticType.DECIMAL, {'numeric', 'decimal'}),
    (SemanticType.FLOAT64, {'real', 'double', 'double precision', 'float'}),
    (SemanticType.TEXT, {'text', 'varchar', 'character', 'char', 'nchar',
                         'nvarchar', 'varying character', 'native character', 'clob'}),
    (SemanticType.BOOLEAN, {'boolean', 'bool'}),
    (SemanticType.UUID, {'uuid'}),
    (SemanticType.DATE, {'date'}),
    (SemanticType.DATETIME, {'datetime', 'timestamp'}),
    (SemanticType.TIME, {'time'}),
    (SemanticType.BINARY, {'blob'}),
    (SemanticType.JSON, {'json'}),
    )

COLUMN_TYPE_SQL = """
select
    t.type as native_type,
    null as alt_type,
    null as max_length
from pragma_table_info(:table, :schema) as t
where t.name = :column collate nocase
"""

DIAGNOSTICS_SQL = """
select
    'main' as database_name,
    'main' as schema_name,
    sqlite_version() as version
"""


def convert_date(value: bytes) -> datetime.date:
    """SQLite converter for columns declared DATE.
    """
    return datetime.date.fromisoformat(value.decode())


def convert_datetime(value: bytes) -> datetime.datetime:
    """SQLite converter for columns declared DATETIME or TIMESTAMP.
    """
    return dateutil.parser.isoparse(value.decode().replace(' ', 'T', 1))


def register_type_adapters() -> None:
    """Register SQLite adapters (Python -> SQLite) and converters (SQLite -> Python).

    Registration is process-wide in the sqlite3 module; the stdlib defaults
    for dates are deprecated, so explicit ISO-format adapters are installed.
    """
    sqlite3.register_adapter(dict, json.dumps)
    sqlite3.register_adapter(list, json.dumps)
    sqlite3.register_adapter(datetime.date, lambda d: d.isoformat())
    sqlite3.register_adapter(datetime.datetime, lambda d: d.isoformat(' '))
    sqlite3.register_adapter(datetime.time, lambda t: t.isoformat())
    sqlite3.register_converter('date', convert_date)
    sqlite3.register_converter('datetime', convert_datetime)
    sqlite3.register_converter('timestamp', convert_datetime)


SQLITE = register_dialect(Dialect(
    name='sqlite',
    display_name='SQLite',
    quote_open='`',
    quote_close='`',
    default_schema='main',
    limit_style=LIMIT,
    column_type_sql=COLUMN_TYPE_SQL,
    type_catalog=SQLITE_TYPES,
    date_cast='date({column})',
    diagnostics_sql=DIAGNOSTICS_SQL,
    bind_types={SemanticType.UUID: UuidText()},
    ))
