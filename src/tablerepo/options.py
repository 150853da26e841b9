from dataclasses import dataclass

from tablerepo.dialects import get_available_dialects, is_supported_dialect

from libb import ConfigOptions

__all__ = [
    'RepositoryOptions',
    'DEFAULT_LIMIT',
    'DEFAULT_SECRET_COST',
]

DEFAULT_LIMIT = 1000
DEFAULT_SECRET_COST = 10


@dataclass
class RepositoryOptions(ConfigOptions):
    """Options

    supported driver names: `postgresql`, `mssql`, `mysql`, `sqlite`
    (aliases `postgres`, `sqlserver`, `mariadb`). When no driver name is
    given, the dialect is taken from the connection string.

    - default_limit: Row cap applied to every list read (default: 1000)
    - secret_cost: Work factor passed to the secret hasher (default: 10)
    - timeout: Connect timeout in seconds passed to the driver, 0 for none
    - echo: Log every statement through SQLAlchemy's engine logger
    """
    drivername: str = None
    default_limit: int = DEFAULT_LIMIT
    secret_cost: int = DEFAULT_SECRET_COST
    timeout: int = 0
    echo: bool = False

    def __post_init__(self):
        if self.drivername is not None and not is_supported_dialect(self.drivername):
            available = get_available_dialects()
            raise ValueError(f'drivername must be one of: {available}')
        if not isinstance(self.default_limit, int) or isinstance(self.default_limit, bool) \
                or self.default_limit < 1:
            raise ValueError(f'default_limit must be a positive integer, got {self.default_limit!r}')
        if not isinstance(self.secret_cost, int) or self.secret_cost < 1:
            raise ValueError(f'secret_cost must be a positive integer, got {self.secret_cost!r}')
        if self.timeout < 0:
            raise ValueError(f'timeout must not be negative, got {self.timeout!r}')
