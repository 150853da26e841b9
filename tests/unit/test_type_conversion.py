"""
Tests for coercion of raw string input and date-only handling.
"""
import datetime
import decimal
import uuid

import pytest
import sqlalchemy as sa
from tablerepo.adapters.type_conversion import bind_value, coerce, extract_date
from tablerepo.adapters.type_conversion import is_date_only, needs_date_cast
from tablerepo.exceptions import ConversionError
from tablerepo.types import ColumnTypeInfo, SemanticType

pytestmark = pytest.mark.unit


class TestIsDateOnly:
    """Test detection of bare dates."""

    @pytest.mark.parametrize('value', ['2024-03-15', '1999-12-31', '2024-02-30'])
    def test_date_only(self, value):
        assert is_date_only(value)

    @pytest.mark.parametrize('value', [
        '2024-03-15T10:00:00',
        '2024-03-15 10:00',
        '15-03-2024',
        '2024/03/15',
        '2024-3-15',
        '20240315',
        '',
        None,
        datetime.date(2024, 3, 15),
    ])
    def test_not_date_only(self, value):
        assert not is_date_only(value)

    @pytest.mark.parametrize(('semantic_type', 'value', 'expected'), [
        (SemanticType.DATETIME, '2024-03-15', True),
        (SemanticType.DATETIME_WITH_OFFSET, '2024-03-15', True),
        (SemanticType.DATETIME, '2024-03-15T00:00:00', False),
        (SemanticType.DATE, '2024-03-15', False),
        (SemanticType.TEXT, '2024-03-15', False),
    ])
    def test_needs_date_cast(self, semantic_type, value, expected):
        assert needs_date_cast(semantic_type, value) is expected


class TestExtractDate:
    """Test the strict date extraction used by the date-cast predicate."""

    @pytest.mark.parametrize(('value', 'expected'), [
        ('2024-03-15', datetime.date(2024, 3, 15)),
        ('2024-03-15T10:30:00', datetime.date(2024, 3, 15)),
        ('2024-03-15T23:59:59+05:00', datetime.date(2024, 3, 15)),
    ])
    def test_extract(self, value, expected):
        assert extract_date(value) == expected

    @pytest.mark.parametrize('value', ['2024-02-30', 'not a date', '', 'March', '15'])
    def test_invalid_date_raises(self, value):
        with pytest.raises(ConversionError):
            extract_date(value)


class TestCoerce:
    """Test best-effort string coercion per semantic type."""

    @pytest.mark.parametrize(('value', 'semantic_type', 'expected'), [
        ('42', SemanticType.INTEGER32, 42),
        (' -7 ', SemanticType.INTEGER16, -7),
        ('9223372036854775807', SemanticType.INTEGER64, 9223372036854775807),
        ('127', SemanticType.INTEGER8, 127),
        ('10.50', SemanticType.DECIMAL, decimal.Decimal('10.50')),
        ('2.5', SemanticType.FLOAT64, 2.5),
        ('1e3', SemanticType.FLOAT32, 1000.0),
        ('TRUE', SemanticType.BOOLEAN, True),
        ('0', SemanticType.BOOLEAN, False),
        ('12345678-1234-5678-1234-567812345678', SemanticType.UUID,
         uuid.UUID('12345678-1234-5678-1234-567812345678')),
        ('2024-03-15', SemanticType.DATE, datetime.date(2024, 3, 15)),
        ('2024-03-15T10:30:00', SemanticType.DATETIME, datetime.datetime(2024, 3, 15, 10, 30)),
        ('2024-03-15T10:30:00+02:00', SemanticType.DATETIME, datetime.datetime(2024, 3, 15, 8, 30)),
        ('2024-03-15 23:59:59.999000', SemanticType.DATETIME,
         datetime.datetime(2024, 3, 15, 23, 59, 59, 999000)),
        ('10:30:15', SemanticType.TIME, datetime.time(10, 30, 15)),
        ('hello', SemanticType.TEXT, 'hello'),
        ('{"a": 1}', SemanticType.JSON, '{"a": 1}'),
        ('raw', SemanticType.UNKNOWN, 'raw'),
    ])
    def test_coerce(self, value, semantic_type, expected):
        result = coerce(value, semantic_type)
        assert result == expected
        assert type(result) is type(expected)

    def test_offset_kept_for_offset_columns(self):
        result = coerce('2024-03-15T10:30:00+02:00', SemanticType.DATETIME_WITH_OFFSET)
        assert result.utcoffset() == datetime.timedelta(hours=2)

    @pytest.mark.parametrize(('value', 'semantic_type'), [
        ('abc', SemanticType.INTEGER32),
        ('128', SemanticType.INTEGER8),
        ('40000', SemanticType.INTEGER16),
        ('1.5', SemanticType.INTEGER64),
        ('NaN', SemanticType.DECIMAL),
        ('yes', SemanticType.BOOLEAN),
        ('not-a-uuid', SemanticType.UUID),
        ('tomorrow-ish', SemanticType.DATETIME),
        ('2024-02-30', SemanticType.DATE),
        ('15', SemanticType.DATE),
        ('Friday', SemanticType.DATE),
        ('March', SemanticType.DATETIME),
        ('2024', SemanticType.DATETIME),
        ('03/15/2024', SemanticType.DATETIME_WITH_OFFSET),
        ('5', SemanticType.TIME),
        ('noon', SemanticType.TIME),
    ])
    def test_failed_coercion_returns_original(self, value, semantic_type, debug_logging):
        assert coerce(value, semantic_type) == value
        assert 'untyped' in debug_logging.text

    @pytest.mark.parametrize('value', [None, 5, datetime.date(2024, 1, 1)])
    def test_non_strings_pass_through(self, value):
        assert coerce(value, SemanticType.INTEGER32) is value

    @pytest.mark.parametrize(('value', 'semantic_type'), [
        ('42', SemanticType.INTEGER32),
        ('-3', SemanticType.INTEGER8),
        ('10.50', SemanticType.DECIMAL),
        ('false', SemanticType.BOOLEAN),
        ('12345678-1234-5678-1234-567812345678', SemanticType.UUID),
        ('2024-03-15', SemanticType.DATE),
        ('2024-03-15T10:30:00', SemanticType.DATETIME),
        ('10:30:15', SemanticType.TIME),
    ])
    def test_coerced_value_survives_restringify(self, value, semantic_type):
        first = coerce(value, semantic_type)
        text = first.isoformat() if hasattr(first, 'isoformat') else str(first)
        assert coerce(text, semantic_type) == first


class TestBindValue:
    """Test BoundParameter construction from resolved column types."""

    def test_typed_binding(self):
        info = ColumnTypeInfo('integer', SemanticType.INTEGER32)
        param = bind_value('id', '42', info)
        assert param.name == 'id'
        assert param.value == 42
        assert param.is_typed
        assert param.sql_type is not None

    def test_failed_coercion_binds_untyped(self):
        param = bind_value('id', 'abc', ColumnTypeInfo('integer', SemanticType.INTEGER32))
        assert param.value == 'abc'
        assert not param.is_typed
        assert isinstance(param.sql_type, sa.types.NullType)

    def test_unknown_column_binds_raw_string(self):
        param = bind_value('missing', '42', ColumnTypeInfo.unknown())
        assert param.value == '42'
        assert isinstance(param.sql_type, sa.types.NullType)

    def test_bool_is_not_an_integer(self):
        param = bind_value('n', True, ColumnTypeInfo('int', SemanticType.INTEGER32))
        assert not param.is_typed
