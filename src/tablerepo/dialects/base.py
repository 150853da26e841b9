"""
Dialect descriptor and registry.

A Dialect holds everything that differs between engines as data: identifier
quoting, schema qualification, row-limit syntax, the metadata query used to
introspect a column, the date-cast expression, the native type catalog and the
diagnostics queries. The repository executor is written once against this
descriptor, so engines differ only in the values registered here.

Each concrete dialect module registers exactly one instance at import time.
Instances are immutable and shared for the life of the process.
"""
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

import sqlalchemy as sa
from tablerepo.types import BoundParameter, SemanticType

# Registry of dialect name (and aliases) -> Dialect
_DIALECT_REGISTRY: dict[str, 'Dialect'] = {}

LIMIT = 'limit'
TOP = 'top'


@dataclass(frozen=True, eq=False)
class Dialect:
    """Per-engine constants.

    Args:
        name: SQLAlchemy backend name ('postgresql', 'mssql', 'mysql', 'sqlite')
        display_name: Engine name reported by diagnostics
        quote_open: Opening identifier quote character
        quote_close: Closing identifier quote character (doubled to escape)
        default_schema: Schema assumed when none is given; never used as a
            prefix. None means the connection's current database.
        limit_style: LIMIT for a trailing ``LIMIT n``, TOP for a leading
            ``TOP (n)``
        column_type_sql: Metadata query binding ``:schema``, ``:table`` and
            ``:column`` and returning ``native_type``, ``alt_type`` and
            ``max_length``
        type_catalog: Normalized native type name -> SemanticType
        date_cast: Expression template truncating ``{column}`` to a date
        diagnostics_sql: Single-row server metadata query
        uptime_sql: Optional second query whose first row's second column
            holds the server uptime in seconds
        bind_types: SemanticType -> SQLAlchemy type replacing the default
            bind type for values of that semantic type
        aliases: Other backend names resolving to this dialect
    """
    name: str
    display_name: str
    quote_open: str
    quote_close: str
    default_schema: str | None
    limit_style: str
    column_type_sql: str
    type_catalog: Mapping[str, SemanticType]
    date_cast: str = 'CAST({column} AS DATE)'
    diagnostics_sql: str | None = None
    uptime_sql: str | None = None
    bind_types: Mapping[SemanticType, sa.types.TypeEngine] = field(default_factory=dict)
    aliases: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        if self.limit_style not in {LIMIT, TOP}:
            raise ValueError(f'Unknown limit style: {self.limit_style}')
        if not isinstance(self.type_catalog, MappingProxyType):
            object.__setattr__(self, 'type_catalog', MappingProxyType(dict(self.type_catalog)))
        if not isinstance(self.bind_types, MappingProxyType):
            object.__setattr__(self, 'bind_types', MappingProxyType(dict(self.bind_types)))

    def quote_identifier(self, identifier: str) -> str:
        """Quote a table, schema or column name.
        """
        escaped = identifier.replace(self.quote_close, self.quote_close * 2)
        return f'{self.quote_open}{escaped}{self.quote_close}'

    def effective_schema(self, schema: str | None) -> str | None:
        """Return the schema to use for metadata lookups.
        """
        if schema is None or not schema.strip():
            return self.default_schema
        return schema.strip()

    def qualify(self, table: str, schema: str | None = None) -> str:
        """Return the quoted, optionally schema-qualified table name.

        The schema prefix is omitted when the schema is empty or is the
        dialect default.
        """
        quoted_table = self.quote_identifier(table)
        schema = schema.strip() if schema else None
        if not schema or schema == self.default_schema:
            return quoted_table
        return f'{self.quote_identifier(schema)}.{quoted_table}'

    def cast_to_date(self, quoted_column: str) -> str:
        return self.date_cast.format(column=quoted_column)

    def bind_type(self, parameter: BoundParameter) -> sa.types.TypeEngine:
        """Return the SQLAlchemy type a parameter is bound with on this engine.
        """
        if parameter.is_typed and parameter.semantic_type in self.bind_types:
            return self.bind_types[parameter.semantic_type]
        return parameter.sql_type


def register_dialect(dialect: Dialect) -> Dialect:
    """Register a dialect under its name and aliases.

    Usage:
        POSTGRES = register_dialect(Dialect(name='postgresql', ...))
    """
    for name in (dialect.name, *dialect.aliases):
        _DIALECT_REGISTRY[name] = dialect
    return dialect


def build_catalog(*groups: tuple[SemanticType, set[str]]) -> dict[str, SemanticType]:
    """Build a type catalog from (semantic type, native names) groups.

    Raises ValueError if a native name is mapped twice, so each dialect has
    exactly one semantic type per native type name.
    """
    catalog: dict[str, SemanticType] = {}
    for semantic_type, names in groups:
        for native in names:
            native = native.lower()
            if native in catalog and catalog[native] is not semantic_type:
                raise ValueError(f'Native type {native!r} mapped to both '
                                 f'{catalog[native]} and {semantic_type}')
            catalog[native] = semantic_type
    return catalog
