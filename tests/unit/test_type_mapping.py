"""
Tests for native type resolution against each dialect's catalog.
"""
import pytest
from tablerepo.adapters.type_mapping import normalize_type_name, parse_max_length
from tablerepo.adapters.type_mapping import resolve_column_info, resolve_type
from tablerepo.dialects import MYSQL, POSTGRES, SQLITE, SQLSERVER
from tablerepo.dialects.base import build_catalog
from tablerepo.types import SemanticType

ALL_DIALECTS = [POSTGRES, SQLSERVER, MYSQL, SQLITE]

pytestmark = pytest.mark.unit


class TestNormalizeTypeName:
    """Test normalization of native type names before lookup."""

    @pytest.mark.parametrize(('native', 'expected'), [
        ('VARCHAR(50)', 'varchar'),
        ('  Numeric(10, 2) ', 'numeric'),
        ('int(11) unsigned', 'int'),
        ('INT UNSIGNED ZEROFILL', 'int'),
        ('timestamp  with   time zone', 'timestamp with time zone'),
        ('nvarchar(max)', 'nvarchar'),
    ])
    def test_normalize(self, native, expected):
        assert normalize_type_name(native) == expected

    @pytest.mark.parametrize(('native', 'expected'), [
        ('VARCHAR(50)', 50),
        ('NUMERIC(10, 2)', None),
        ('nvarchar(max)', None),
        ('text', None),
        (None, None),
    ])
    def test_parse_max_length(self, native, expected):
        assert parse_max_length(native) == expected


class TestResolveType:
    """Test native type name -> SemanticType per dialect."""

    @pytest.mark.parametrize(('dialect', 'native', 'alt', 'expected'), [
        (POSTGRES, 'integer', 'int4', SemanticType.INTEGER32),
        (POSTGRES, 'bigint', 'int8', SemanticType.INTEGER64),
        (POSTGRES, 'character varying', 'varchar', SemanticType.TEXT),
        (POSTGRES, 'timestamp without time zone', 'timestamp', SemanticType.DATETIME),
        (POSTGRES, 'timestamp with time zone', 'timestamptz', SemanticType.DATETIME_WITH_OFFSET),
        (POSTGRES, 'USER-DEFINED', 'citext', SemanticType.TEXT),
        (POSTGRES, 'jsonb', 'jsonb', SemanticType.JSON),
        (POSTGRES, 'ARRAY', '_int4', SemanticType.UNKNOWN),
        (SQLSERVER, 'uniqueidentifier', None, SemanticType.UUID),
        (SQLSERVER, 'datetime2', None, SemanticType.DATETIME),
        (SQLSERVER, 'datetimeoffset', None, SemanticType.DATETIME_WITH_OFFSET),
        (SQLSERVER, 'bit', None, SemanticType.BOOLEAN),
        (SQLSERVER, 'tinyint', None, SemanticType.INTEGER8),
        (SQLSERVER, 'NVARCHAR', None, SemanticType.TEXT),
        (SQLSERVER, 'geography', None, SemanticType.UNKNOWN),
        (MYSQL, 'tinyint', 'tinyint(1)', SemanticType.BOOLEAN),
        (MYSQL, 'tinyint', 'tinyint(4)', SemanticType.INTEGER8),
        (MYSQL, 'int', 'int(11) unsigned', SemanticType.INTEGER32),
        (MYSQL, 'enum', "enum('a','b')", SemanticType.TEXT),
        (MYSQL, 'json', 'json', SemanticType.JSON),
        (SQLITE, 'INTEGER', None, SemanticType.INTEGER64),
        (SQLITE, 'VARCHAR(50)', None, SemanticType.TEXT),
        (SQLITE, 'DATETIME', None, SemanticType.DATETIME),
        (SQLITE, 'geometry', None, SemanticType.UNKNOWN),
    ])
    def test_resolve(self, dialect, native, alt, expected):
        assert resolve_type(dialect, native, alt) is expected

    @pytest.mark.parametrize('dialect', ALL_DIALECTS, ids=lambda d: d.name)
    def test_catalog_resolution_is_deterministic(self, dialect):
        """Every catalog entry resolves to its own semantic type on every call."""
        for native, semantic_type in dialect.type_catalog.items():
            first = resolve_type(dialect, native)
            assert first is semantic_type
            assert resolve_type(dialect, native) is first

    def test_catalog_is_read_only(self):
        with pytest.raises(TypeError):
            POSTGRES.type_catalog['money'] = SemanticType.DECIMAL

    def test_conflicting_catalog_entries_rejected(self):
        with pytest.raises(ValueError, match='mapped to both'):
            build_catalog((SemanticType.TEXT, {'clob'}), (SemanticType.BINARY, {'CLOB'}))


class TestResolveColumnInfo:
    """Test ColumnTypeInfo construction from metadata rows."""

    def test_missing_names_are_unknown(self):
        info = resolve_column_info(POSTGRES, None, None, 20)
        assert info.is_unknown
        assert info.native_type is None

    def test_max_length_from_metadata(self):
        info = resolve_column_info(POSTGRES, 'character varying', 'varchar', 120)
        assert info.semantic_type is SemanticType.TEXT
        assert info.max_length == 120

    def test_sqlserver_max_columns_have_no_length(self):
        info = resolve_column_info(SQLSERVER, 'nvarchar', None, -1)
        assert info.max_length is None

    def test_max_length_from_declared_type(self):
        info = resolve_column_info(SQLITE, 'VARCHAR(50)')
        assert info.semantic_type is SemanticType.TEXT
        assert info.max_length == 50
        assert info.native_type == 'VARCHAR(50)'
