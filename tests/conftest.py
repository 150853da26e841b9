import logging
import pathlib
import site

import pytest
from tablerepo.connection import dispose_all_engines

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
site.addsitedir(HERE)


@pytest.fixture(autouse=True)
def dispose_engines():
    """Dispose cached engines after each test so database files can be removed."""
    yield
    dispose_all_engines()


@pytest.fixture
def debug_logging(caplog):
    """Capture tablerepo log records at DEBUG level."""
    caplog.set_level(logging.DEBUG, logger='tablerepo')
    return caplog


pytest_plugins = [
    'tests.fixtures.mocks',
    'tests.fixtures.sqlite',
]
