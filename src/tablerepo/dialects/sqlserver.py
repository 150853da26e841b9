"""
SQL Server dialect.

- Square-bracket identifiers, default schema ``dbo``
- Leading ``TOP (n)`` row cap
- Column types from ``INFORMATION_SCHEMA.COLUMNS``
- Server metadata from ``sys.dm_os_sys_info`` and ``SERVERPROPERTY``;
  ``sql_variant`` results are cast so pyodbc can read them
"""
from tablerepo.dialects.base import TOP, Dialect, build_catalog
from tablerepo.dialects.base import register_dialect
from tablerepo.types import SemanticType

SQLSERVER_TYPES = build_catalog(
    (SemanticType.INTEGER64, {'bigint'}),
    (SemanticType.INTEGER32, {'int'}),
    (SemanticType.INTEGER16, {'smallint'}),
    (SemanticType.INTEGER8, {'tinyint'}),
    (SemanticType.DECIMAL, {'decimal', 'numeric', 'money', 'smallmoney'}),
    (SemanticType.FLOAT64, {'float'}),
    (SemanticType.FLOAT32, {'real'}),
    (SemanticType.TEXT, {'varchar', 'char', 'text', 'nvarchar', 'nchar',
                         'ntext', 'xml', 'sysname'}),
    (SemanticType.BOOLEAN, {'bit'}),
    (SemanticType.UUID, {'uniqueidentifier'}),
    (SemanticType.DATE, {'date'}),
    (SemanticType.DATETIME, {'datetime', 'datetime2', 'smalldatetime'}),
    (SemanticType.DATETIME_WITH_OFFSET, {'datetimeoffset'}),
    (SemanticType.TIME, {'time'}),
    (SemanticType.BINARY, {'binary', 'varbinary', 'image', 'timestamp', 'rowversion'}),
    )

COLUMN_TYPE_SQL = """
SELECT
    c.DATA_TYPE AS native_type,
    NULL AS alt_type,
    c.CHARACTER_MAXIMUM_LENGTH AS max_length
FROM INFORMATION_SCHEMA.COLUMNS c
WHERE
    c.TABLE_SCHEMA = :schema
    AND c.TABLE_NAME = :table
    AND c.COLUMN_NAME = :column
"""

DIAGNOSTICS_SQL = """
SELECT
    DB_NAME() AS database_name,
    SCHEMA_NAME() AS schema_name,
    @@VERSION AS version,
    @@SERVERNAME AS server,
    CAST(CONNECTIONPROPERTY('local_tcp_port') AS INT) AS port,
    SUSER_SNAME() AS user_name,
    @@SPID AS connection_id,
    i.sqlserver_start_time AS start_time,
    DATEDIFF(SECOND, i.sqlserver_start_time, SYSDATETIME()) AS uptime_seconds,
    CAST(SERVERPROPERTY('InstanceName') AS NVARCHAR(128)) AS instance,
    CAST(SERVERPROPERTY('Edition') AS NVARCHAR(128)) AS edition,
    CAST(SERVERPROPERTY('ProductVersion') AS NVARCHAR(128)) AS product_version
FROM sys.dm_os_sys_info i
"""

SQLSERVER = register_dialect(Dialect(
    name='mssql',
    display_name='SQL Server',
    quote_open='[',
    quote_close=']',
    default_schema='dbo',
    limit_style=TOP,
    column_type_sql=COLUMN_TYPE_SQL,
    type_catalog=SQLSERVER_TYPES,
    diagnostics_sql=DIAGNOSTICS_SQL,
    aliases=('sqlserver',),
    ))
