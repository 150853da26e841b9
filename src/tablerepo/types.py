"""
Canonical type handling shared by every dialect.

This module provides:
- SemanticType: the closed set of value domains native column types map to
- ColumnTypeInfo: resolved type information for a single column
- BoundParameter: a coerced value ready to be bound to a statement
- get_sql_type: SemanticType to SQLAlchemy bind type
- UuidText: uuid bound as its dashed text form, for engines without a
  native uuid type
"""
import datetime
import decimal
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Self

import sqlalchemy as sa


class SemanticType(Enum):
    """Canonical value domain of a column, independent of the engine.
    """
    INTEGER64 = 'integer64'
    INTEGER32 = 'integer32'
    INTEGER16 = 'integer16'
    INTEGER8 = 'integer8'
    DECIMAL = 'decimal'
    FLOAT64 = 'float64'
    FLOAT32 = 'float32'
    TEXT = 'text'
    BOOLEAN = 'boolean'
    UUID = 'uuid'
    DATE = 'date'
    DATETIME = 'datetime'
    DATETIME_WITH_OFFSET = 'datetime_with_offset'
    TIME = 'time'
    BINARY = 'binary'
    JSON = 'json'
    UNKNOWN = 'unknown'

    @property
    def is_integer(self) -> bool:
        return self in INTEGER_RANGES

    @property
    def is_timestamp(self) -> bool:
        return self in {SemanticType.DATETIME, SemanticType.DATETIME_WITH_OFFSET}

    @property
    def is_passthrough(self) -> bool:
        """Types whose values are bound exactly as received.
        """
        return self in {SemanticType.TEXT, SemanticType.JSON,
                        SemanticType.BINARY, SemanticType.UNKNOWN}


# Inclusive bounds of the signed integer widths
INTEGER_RANGES: dict[SemanticType, tuple[int, int]] = {
    SemanticType.INTEGER64: (-2**63, 2**63 - 1),
    SemanticType.INTEGER32: (-2**31, 2**31 - 1),
    SemanticType.INTEGER16: (-2**15, 2**15 - 1),
    SemanticType.INTEGER8: (-2**7, 2**7 - 1),
    }

# Runtime representation expected for each coerced semantic type
PYTHON_TYPES: dict[SemanticType, type | tuple[type, ...]] = {
    SemanticType.INTEGER64: int,
    SemanticType.INTEGER32: int,
    SemanticType.INTEGER16: int,
    SemanticType.INTEGER8: int,
    SemanticType.DECIMAL: decimal.Decimal,
    SemanticType.FLOAT64: float,
    SemanticType.FLOAT32: float,
    SemanticType.TEXT: str,
    SemanticType.BOOLEAN: bool,
    SemanticType.UUID: uuid.UUID,
    SemanticType.DATE: datetime.date,
    SemanticType.DATETIME: datetime.datetime,
    SemanticType.DATETIME_WITH_OFFSET: datetime.datetime,
    SemanticType.TIME: datetime.time,
    SemanticType.BINARY: (str, bytes),
    SemanticType.JSON: str,
    SemanticType.UNKNOWN: str,
    }


class UuidText(sa.types.TypeDecorator):
    """Bind a uuid as its canonical dashed string.
    """
    impl = sa.String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value)


def get_sql_type(semantic_type: SemanticType) -> sa.types.TypeEngine:
    """Return the SQLAlchemy type used to bind a coerced value.

    Types bound untyped get NullType, so the value reaches the engine as a
    plain literal with no cast.
    """
    match semantic_type:
        case SemanticType.INTEGER64:
            return sa.BigInteger()
        case SemanticType.INTEGER32:
            return sa.Integer()
        case SemanticType.INTEGER16 | SemanticType.INTEGER8:
            return sa.SmallInteger()
        case SemanticType.DECIMAL:
            return sa.Numeric(asdecimal=True)
        case SemanticType.FLOAT64:
            return sa.Double()
        case SemanticType.FLOAT32:
            return sa.Float()
        case SemanticType.TEXT:
            return sa.String()
        case SemanticType.BOOLEAN:
            return sa.Boolean()
        case SemanticType.UUID:
            return sa.Uuid(as_uuid=True)
        case SemanticType.DATE:
            return sa.Date()
        case SemanticType.DATETIME:
            return sa.DateTime()
        case SemanticType.DATETIME_WITH_OFFSET:
            return sa.DateTime(timezone=True)
        case SemanticType.TIME:
            return sa.Time()
        case SemanticType.BINARY | SemanticType.JSON | SemanticType.UNKNOWN:
            return sa.types.NullType()
    raise ValueError(f'Unhandled semantic type: {semantic_type}')


@dataclass(frozen=True, slots=True)
class ColumnTypeInfo:
    """Type information resolved for one column.
    """
    native_type: str | None
    semantic_type: SemanticType
    max_length: int | None = None

    @classmethod
    def unknown(cls) -> Self:
        return cls(native_type=None, semantic_type=SemanticType.UNKNOWN)

    @property
    def is_unknown(self) -> bool:
        return self.semantic_type is SemanticType.UNKNOWN


@dataclass(frozen=True, slots=True)
class BoundParameter:
    """A value targeted at a column, with the semantic type it was coerced to.
    """
    name: str
    semantic_type: SemanticType
    value: Any

    @property
    def is_typed(self) -> bool:
        """Whether the value holds the runtime type of its semantic type.

        A failed coercion leaves the original string behind, which must be
        bound untyped so the engine applies its own conversion rules.
        """
        if self.value is None or self.semantic_type.is_passthrough:
            return False
        expected = PYTHON_TYPES[self.semantic_type]
        if self.semantic_type.is_integer and isinstance(self.value, bool):
            return False
        return isinstance(self.value, expected)

    @property
    def sql_type(self) -> sa.types.TypeEngine:
        if self.semantic_type is SemanticType.TEXT and isinstance(self.value, str):
            return get_sql_type(SemanticType.TEXT)
        if not self.is_typed:
            return sa.types.NullType()
        return get_sql_type(self.semantic_type)
