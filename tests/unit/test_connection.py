"""
Tests for connection providers and the engine registry.
"""
import pytest
import sqlalchemy as sa
from sqlalchemy.pool import NullPool
from tablerepo.connection import StaticConnectionProvider, as_provider
from tablerepo.connection import connection_scope, dispose_all_engines, get_engine
from tablerepo.connection import resolve_dialect
from tablerepo.dialects import MYSQL, SQLITE
from tablerepo.exceptions import ConfigurationError
from tablerepo.options import RepositoryOptions

pytestmark = pytest.mark.unit


class TestProviders:

    def test_string_becomes_provider(self):
        provider = as_provider('sqlite:///x.db')
        assert isinstance(provider, StaticConnectionProvider)
        assert provider.get_connection_string() == 'sqlite:///x.db'

    def test_provider_passed_through(self, failing_provider):
        assert as_provider(failing_provider) is failing_provider

    def test_rejects_other_objects(self):
        with pytest.raises(ConfigurationError):
            as_provider(42)

    def test_repr_hides_password(self):
        provider = StaticConnectionProvider('postgresql://app:hunter2@db/sales')
        assert 'hunter2' not in repr(provider)

    def test_dialect_from_options_wins(self):
        provider = as_provider('sqlite:///x.db')
        assert resolve_dialect(provider, RepositoryOptions(drivername='mariadb')) is MYSQL
        assert resolve_dialect(provider, RepositoryOptions()) is SQLITE

    def test_failing_provider(self, failing_provider):
        with pytest.raises(ConfigurationError, match='vault unavailable'):
            resolve_dialect(failing_provider, RepositoryOptions())

    def test_empty_connection_string(self, empty_provider):
        with pytest.raises(ConfigurationError, match='empty'):
            with connection_scope(empty_provider, RepositoryOptions()):
                pass


class TestEngineRegistry:

    def test_engine_reused_and_unpooled(self, tmp_path):
        url = f'sqlite:///{tmp_path / "a.db"}'
        options = RepositoryOptions()
        engine = get_engine(url, options)
        assert get_engine(url, options) is engine
        assert isinstance(engine.pool, NullPool)

    def test_dispose_clears_registry(self, tmp_path):
        url = f'sqlite:///{tmp_path / "a.db"}'
        engine = get_engine(url, RepositoryOptions())
        dispose_all_engines()
        assert get_engine(url, RepositoryOptions()) is not engine

    def test_unknown_driver(self):
        with pytest.raises(ConfigurationError):
            get_engine('nosuchdb://localhost/x', RepositoryOptions())

    def test_scope_commits_on_begin(self, tmp_path):
        provider = as_provider(f'sqlite:///{tmp_path / "b.db"}')
        options = RepositoryOptions()
        with connection_scope(provider, options, begin=True) as cn:
            cn.execute(sa.text('create table t (x integer)'))
            cn.execute(sa.text('insert into t values (1)'))
        with connection_scope(provider, options) as cn:
            assert cn.execute(sa.text('select count(*) from t')).scalar() == 1
