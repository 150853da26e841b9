"""
Type conversion for values arriving as strings.

Values reach the repository from an API boundary as plain strings. Before
they are bound, each one is converted to the Python type matching the
semantic type of its target column, so the engine never compares text with
an integer, date or uuid column.

Conversion is best-effort: a string that does not parse is returned
unchanged and bound untyped, leaving the engine's own type checking as the
final safety net. The one exception is date extraction for the date-cast
predicate (see `extract_date`), which has no safe fallback.

Usage:
    value = coerce('42', SemanticType.INTEGER32)          # 42
    value = coerce('not a number', SemanticType.INTEGER32) # 'not a number'

    if needs_date_cast(column.semantic_type, '2024-03-15'):
        value = extract_date('2024-03-15')                # date(2024, 3, 15)
"""
import datetime
import decimal
import logging
import re
import uuid
from typing import Any

import dateutil.parser
from tablerepo.exceptions import ConversionError
from tablerepo.types import INTEGER_RANGES, BoundParameter, ColumnTypeInfo
from tablerepo.types import SemanticType

logger = logging.getLogger(__name__)

_INTEGER = re.compile(r'^[+-]?\d+$')
_DATE_SHAPE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
_CALENDAR_DATE = re.compile(r'^\d{4}-\d{2}-\d{2}')

TRUE_STRINGS: set[str] = {'true', '1'}
FALSE_STRINGS: set[str] = {'false', '0'}

# Errors a parser may raise on malformed input
PARSE_ERRORS = (ValueError, OverflowError, ArithmeticError, TypeError, ConversionError)


def parse_integer(value: str, semantic_type: SemanticType) -> int:
    """Parse a signed integer and check it fits the width of the semantic type.
    """
    text = value.strip()
    if not _INTEGER.match(text):
        raise ValueError(f'Not an integer: {value!r}')
    number = int(text)
    low, high = INTEGER_RANGES[semantic_type]
    if not low <= number <= high:
        raise OverflowError(f'{number} out of range for {semantic_type.value}')
    return number


def parse_decimal(value: str) -> decimal.Decimal:
    number = decimal.Decimal(value.strip())
    if not number.is_finite():
        raise ValueError(f'Not a finite decimal: {value!r}')
    return number


def parse_boolean(value: str) -> bool:
    text = value.strip().lower()
    if text in TRUE_STRINGS:
        return True
    if text in FALSE_STRINGS:
        return False
    raise ValueError(f'Not a boolean: {value!r}')


def parse_timestamp(value: str, keep_offset: bool = True) -> datetime.datetime:
    """Parse an ISO 8601 timestamp with a full calendar date.

    Reduced forms such as a bare year or month, and free text, are rejected
    rather than completed with default fields. Without `keep_offset`, an
    aware timestamp is converted to UTC and made naive.
    """
    text = value.strip()
    if not _CALENDAR_DATE.match(text):
        raise ValueError(f'Not an ISO calendar date: {value!r}')
    parsed = dateutil.parser.isoparse(text)
    if not keep_offset and parsed.tzinfo is not None:
        parsed = parsed.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return parsed


def parse_time(value: str) -> datetime.time:
    text = value.strip()
    try:
        return datetime.time.fromisoformat(text)
    except ValueError:
        return dateutil.parser.isoparser().parse_isotime(text)


def is_date_only(value: Any) -> bool:
    """Detect a bare date such as ``'2024-03-15'``.

    Exactly 10 characters with exactly two hyphens and neither a time
    separator nor a ``T`` delimiter, laid out year first.
    """
    if not isinstance(value, str):
        return False
    return (len(value) == 10
            and value.count('-') == 2
            and ':' not in value
            and 'T' not in value
            and _DATE_SHAPE.match(value) is not None)


def needs_date_cast(semantic_type: SemanticType, value: Any) -> bool:
    """Whether a filter on a timestamp column should compare calendar dates.
    """
    return semantic_type.is_timestamp and is_date_only(value)


def extract_date(value: str) -> datetime.date:
    """Extract the calendar date from a string.

    Tries a full timestamp parse first and keeps its date, then a strict
    ISO date parse.

    Raises
        ConversionError: if neither parse succeeds
    """
    try:
        return parse_timestamp(value).date()
    except (ValueError, OverflowError) as exc:
        logger.debug(f'Timestamp parse failed for {value!r}: {exc}')
    try:
        return datetime.date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ConversionError(f'Could not convert {value!r} to a date') from exc


def _convert(value: str, semantic_type: SemanticType) -> Any:
    match semantic_type:
        case (SemanticType.INTEGER64 | SemanticType.INTEGER32
              | SemanticType.INTEGER16 | SemanticType.INTEGER8):
            return parse_integer(value, semantic_type)
        case SemanticType.DECIMAL:
            return parse_decimal(value)
        case SemanticType.FLOAT64 | SemanticType.FLOAT32:
            return float(value.strip())
        case SemanticType.BOOLEAN:
            return parse_boolean(value)
        case SemanticType.UUID:
            return uuid.UUID(value.strip())
        case SemanticType.DATETIME:
            return parse_timestamp(value, keep_offset=False)
        case SemanticType.DATETIME_WITH_OFFSET:
            return parse_timestamp(value)
        case SemanticType.DATE:
            return extract_date(value)
        case SemanticType.TIME:
            return parse_time(value)
        case _:
            return value


def coerce(value: Any, semantic_type: SemanticType) -> Any:
    """Convert a string to the Python type of a semantic type.

    Non-string values (None, or values already typed by the caller) are
    returned as they are. A string that fails to parse is returned unchanged.

    Args:
        value: Raw value, usually a string from the API boundary
        semantic_type: Semantic type of the target column

    Returns
        Converted value, or the original value when conversion is not
        possible
    """
    if not isinstance(value, str) or semantic_type.is_passthrough:
        return value
    try:
        return _convert(value, semantic_type)
    except PARSE_ERRORS as exc:
        logger.debug(f'Binding {value!r} untyped, not a valid {semantic_type.value}: {exc}')
        return value


def bind_value(column: str, value: Any, column_info: ColumnTypeInfo) -> BoundParameter:
    """Coerce a value for a column and wrap it as a BoundParameter.
    """
    semantic_type = column_info.semantic_type
    return BoundParameter(name=column, semantic_type=semantic_type,
                          value=coerce(value, semantic_type))
