"""
Tests for the dialect registry and descriptors.
"""
import uuid

import pytest
import sqlalchemy as sa
from tablerepo.dialects import MYSQL, POSTGRES, SQLITE, SQLSERVER
from tablerepo.dialects import get_available_dialects, get_dialect
from tablerepo.dialects import get_dialect_for_url, is_supported_dialect
from tablerepo.dialects.base import LIMIT, Dialect
from tablerepo.exceptions import ConfigurationError
from tablerepo.types import BoundParameter, SemanticType, UuidText

pytestmark = pytest.mark.unit


class TestRegistry:
    """Test dialect lookup by name, alias and URL."""

    @pytest.mark.parametrize(('name', 'expected'), [
        ('postgresql', POSTGRES),
        ('postgres', POSTGRES),
        ('PostgreSQL+psycopg', POSTGRES),
        ('mssql', SQLSERVER),
        ('sqlserver', SQLSERVER),
        ('mysql', MYSQL),
        ('mariadb', MYSQL),
        ('sqlite', SQLITE),
    ])
    def test_get_dialect(self, name, expected):
        assert get_dialect(name) is expected
        assert is_supported_dialect(name)

    def test_unknown_dialect(self):
        assert not is_supported_dialect('oracle')
        with pytest.raises(ValueError, match='Unsupported dialect'):
            get_dialect('oracle')

    def test_available_dialects_exclude_aliases(self):
        assert get_available_dialects() == ['mssql', 'mysql', 'postgresql', 'sqlite']

    @pytest.mark.parametrize(('url', 'expected'), [
        ('postgresql+psycopg://u:p@localhost/db', POSTGRES),
        ('mssql+pyodbc://u:p@dsn', SQLSERVER),
        ('mariadb+pymysql://u:p@localhost/db', MYSQL),
        ('mysql+pymysql://u:p@localhost/db', MYSQL),
        ('sqlite:///app.db', SQLITE),
    ])
    def test_dialect_for_url(self, url, expected):
        assert get_dialect_for_url(url) is expected

    @pytest.mark.parametrize('url', ['not a url', 'oracle://u:p@host/db'])
    def test_bad_url(self, url):
        with pytest.raises(ConfigurationError):
            get_dialect_for_url(url)


class TestDescriptor:
    """Test quoting and schema handling on the descriptor."""

    @pytest.mark.parametrize(('dialect', 'schema', 'expected'), [
        (POSTGRES, None, 'public'),
        (POSTGRES, '  ', 'public'),
        (POSTGRES, ' sales ', 'sales'),
        (SQLSERVER, None, 'dbo'),
        (MYSQL, None, None),
        (SQLITE, '', 'main'),
    ])
    def test_effective_schema(self, dialect, schema, expected):
        assert dialect.effective_schema(schema) == expected

    @pytest.mark.parametrize(('dialect', 'schema', 'expected'), [
        (POSTGRES, 'public', '"users"'),
        (POSTGRES, 'Public', '"Public"."users"'),
        (SQLSERVER, 'dbo', '[users]'),
        (SQLSERVER, 'sales', '[sales].[users]'),
        (MYSQL, 'shop', '`shop`.`users`'),
        (MYSQL, '', '`users`'),
        (SQLITE, 'main', '`users`'),
        (SQLITE, 'aux', '`aux`.`users`'),
    ])
    def test_qualify(self, dialect, schema, expected):
        assert dialect.qualify('users', schema) == expected

    def test_descriptor_is_immutable(self):
        with pytest.raises(AttributeError):
            POSTGRES.default_schema = 'other'

    def test_invalid_limit_style(self):
        with pytest.raises(ValueError, match='limit style'):
            Dialect(name='x', display_name='X', quote_open='"', quote_close='"',
                    default_schema=None, limit_style='fetch', column_type_sql='',
                    type_catalog={})

    def test_limit_styles(self):
        assert POSTGRES.limit_style == LIMIT
        assert SQLSERVER.limit_style != LIMIT

    @pytest.mark.parametrize(('identifier', 'expected'), [
        ('users', '`users`'),
        ('we`ird', '`we``ird`'),
    ])
    def test_sqlite_backtick_quoting(self, identifier, expected):
        assert SQLITE.quote_identifier(identifier) == expected


class TestBindTypes:
    """Test per-dialect bind type overrides."""

    def test_override_applies_to_typed_values(self):
        param = BoundParameter('ref', SemanticType.UUID, uuid.uuid4())
        assert isinstance(SQLITE.bind_type(param), UuidText)
        assert isinstance(POSTGRES.bind_type(param), sa.Uuid)

    def test_untyped_value_ignores_override(self):
        param = BoundParameter('ref', SemanticType.UUID, 'not-a-uuid')
        assert isinstance(SQLITE.bind_type(param), sa.types.NullType)

    def test_overrides_are_read_only(self):
        with pytest.raises(TypeError):
            SQLITE.bind_types[SemanticType.TEXT] = sa.Text()
