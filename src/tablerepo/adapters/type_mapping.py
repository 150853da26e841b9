"""
Type resolution for database columns.

Maps the native type names reported by engine metadata to SemanticType using
the dialect's type catalog. Resolution is a pure lookup: the same dialect and
native name always resolve to the same semantic type, and unmapped names
resolve to UNKNOWN.

The module focuses solely on type identification, not conversion.
"""
import logging
import re

from tablerepo.dialects import Dialect
from tablerepo.types import ColumnTypeInfo, SemanticType

logger = logging.getLogger(__name__)

_LENGTH_SUFFIX = re.compile(r'\s*\(([^)]*)\)')
_MODIFIERS = re.compile(r'\b(unsigned|signed|zerofill)\b')
_WHITESPACE = re.compile(r'\s+')


def normalize_type_name(native_type: str) -> str:
    """Normalize a native type name for catalog lookup.

    Lower-cases, drops length/precision suffixes and integer modifiers, and
    collapses whitespace: ``'VARCHAR(50)'`` -> ``'varchar'``,
    ``'int(11) unsigned'`` -> ``'int'``.
    """
    name = _LENGTH_SUFFIX.sub('', native_type.strip().lower())
    name = _MODIFIERS.sub('', name)
    return _WHITESPACE.sub(' ', name).strip()


def parse_max_length(native_type: str | None) -> int | None:
    """Extract a single length argument from a declared type, if present.

    >>> parse_max_length('VARCHAR(50)')
    50
    >>> parse_max_length('NUMERIC(10, 2)') is None
    True
    """
    if not native_type:
        return None
    match = _LENGTH_SUFFIX.search(native_type)
    if match and match.group(1).strip().isdigit():
        return int(match.group(1))
    return None


def resolve_type(dialect: Dialect, native_type: str | None,
                 alt_type: str | None = None) -> SemanticType:
    """Resolve a native type name to its SemanticType.

    Exact names are tried first (alternate name before the primary one, so
    ``tinyint(1)`` from MySQL's ``column_type`` wins over ``tinyint``), then
    the normalized forms of the primary and alternate names.

    Args:
        dialect: Dialect whose type catalog is used
        native_type: Primary type name from the metadata query
        alt_type: Secondary name (PostgreSQL ``udt_name``, MySQL ``column_type``)

    Returns
        SemanticType, UNKNOWN when no catalog entry matches
    """
    catalog = dialect.type_catalog
    names = [n for n in (alt_type, native_type) if n]

    for name in names:
        exact = name.strip().lower()
        if exact in catalog:
            return catalog[exact]

    for name in reversed(names):
        normalized = normalize_type_name(name)
        if normalized in catalog:
            return catalog[normalized]

    logger.debug(f'No {dialect.name} catalog entry for {native_type=} {alt_type=}')
    return SemanticType.UNKNOWN


def resolve_column_info(dialect: Dialect, native_type: str | None,
                        alt_type: str | None = None,
                        max_length: int | None = None) -> ColumnTypeInfo:
    """Build ColumnTypeInfo from one row of a dialect's metadata query.
    """
    if not native_type and not alt_type:
        return ColumnTypeInfo.unknown()
    semantic_type = resolve_type(dialect, native_type, alt_type)
    if max_length is None:
        max_length = parse_max_length(native_type)
    elif max_length < 0:
        # SQL Server reports -1 for (max) columns
        max_length = None
    return ColumnTypeInfo(
        native_type=native_type or alt_type,
        semantic_type=semantic_type,
        max_length=max_length,
        )
