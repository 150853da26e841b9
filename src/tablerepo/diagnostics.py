"""
Connection diagnostics.

Reports which server a repository is talking to: engine, database, version,
address, connected user and how long the server has been running. The uptime
is used to guess the deployment: a server started minutes ago is most likely
an ephemeral container, one that has run for days is a persistent local
instance.
"""
import datetime
import decimal
import logging
from dataclasses import dataclass, field
from typing import Any

import sqlalchemy as sa
from tablerepo.dialects import Dialect
from tablerepo.exceptions import ProviderError
from tablerepo.schema import ScopeFactory

logger = logging.getLogger(__name__)

EXPLANATION = ("If 'startTime' is recent (minutes or hours), the server is probably "
               'a container. If it is old (days or weeks), it is probably a local '
               'installation.')
EMBEDDED = 'Embedded database file (no server process)'

# Columns every diagnostics query may return; anything else goes to details
_STANDARD_COLUMNS = {
    'database_name', 'schema_name', 'version', 'server', 'port', 'user_name',
    'connection_id', 'start_time', 'uptime_seconds',
    }


@dataclass
class DiagnosticInfo:
    """Server metadata for the active connection.
    """
    provider: str
    database: str | None = None
    schema: str | None = None
    version: str | None = None
    server: str | None = None
    port: int | None = None
    user: str | None = None
    connection_id: int | None = None
    start_time: datetime.datetime | None = None
    uptime: datetime.timedelta | None = None
    connection_type: str = EMBEDDED
    explanation: str = EXPLANATION
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Wire representation with camelCase keys.
        """
        start_time = self.start_time
        if isinstance(start_time, datetime.datetime):
            start_time = start_time.strftime('%Y-%m-%dT%H:%M:%S')
        data = {
            'provider': self.provider,
            'database': self.database,
            'schema': self.schema,
            'version': self.version,
            'server': self.server,
            'port': self.port,
            'startTime': start_time,
            'connectedUser': self.user,
            'connectionId': self.connection_id,
            'uptime': format_uptime(self.uptime) if self.uptime is not None else None,
            'connectionType': self.connection_type,
            'explanation': self.explanation,
            }
        for key, value in self.details.items():
            data.setdefault(_camel_case(key), value)
        return data


def _camel_case(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)


def format_uptime(uptime: datetime.timedelta) -> str:
    """Render an uptime as whole days, hours and minutes.

    >>> format_uptime(datetime.timedelta(days=2, hours=3, minutes=4, seconds=5))
    '2 days, 3 hours, 4 minutes'
    """
    hours, remainder = divmod(uptime.seconds, 3600)
    return f'{uptime.days} days, {hours} hours, {remainder // 60} minutes'


def classify_uptime(uptime: datetime.timedelta | None, provider: str) -> str:
    """Guess the deployment kind from how long the server has been up.
    """
    if uptime is None:
        return EMBEDDED
    minutes = uptime.total_seconds() / 60
    if minutes < 60:
        return f'Likely a container (started {int(minutes)} minutes ago)'
    if minutes < 60 * 24:
        return f'Possibly a container or a restarted service (started {int(minutes // 60)} hours ago)'
    if uptime.days < 7:
        return f'Likely a local {provider} instance (started {uptime.days} days ago)'
    return f'Almost certainly a local {provider} instance (started {uptime.days} days ago)'


def detect_provider(dialect: Dialect, server_type: str | None) -> str:
    """Name the engine, telling MariaDB apart from MySQL.
    """
    if server_type and 'mariadb' in server_type.lower():
        return 'MariaDB'
    return dialect.display_name


def _to_seconds(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, datetime.timedelta):
        return value.total_seconds()
    if isinstance(value, (int, float, decimal.Decimal)):
        return float(value)
    return float(str(value).strip())


def _to_int(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.debug(f'Non-numeric diagnostic value {value!r}')
        return None


def _read_uptime(cn: sa.Connection, dialect: Dialect) -> float | None:
    """Run the dialect's status query and return the uptime in seconds.
    """
    row = cn.execute(sa.text(dialect.uptime_sql)).first()
    if row is None:
        return None
    return _to_seconds(row[1])


def probe(scope: ScopeFactory, dialect: Dialect) -> DiagnosticInfo:
    """Collect diagnostics for the connection behind `scope`.

    Raises
        ProviderError: if the diagnostics query returns no row
    """
    if dialect.diagnostics_sql is None:
        return DiagnosticInfo(provider=dialect.display_name)

    with scope() as cn:
        row = cn.execute(sa.text(dialect.diagnostics_sql)).first()
        if row is None:
            raise ProviderError(f'No diagnostic information returned by {dialect.display_name}')
        data = dict(row._mapping)
        uptime_seconds = _to_seconds(data.get('uptime_seconds'))
        if dialect.uptime_sql is not None:
            uptime_seconds = _read_uptime(cn, dialect)

    details = {k: v for k, v in data.items() if k not in _STANDARD_COLUMNS and v is not None}
    provider = detect_provider(dialect, details.get('server_type'))

    uptime = start_time = None
    if uptime_seconds is not None:
        uptime = datetime.timedelta(seconds=int(uptime_seconds))
        start_time = data.get('start_time')
        if start_time is None:
            start_time = datetime.datetime.now(datetime.timezone.utc) - uptime

    database = data.get('database_name')
    info = DiagnosticInfo(
        provider=provider,
        database=database,
        schema=data.get('schema_name') or database,
        version=data.get('version'),
        server=data.get('server'),
        port=_to_int(data.get('port')),
        user=data.get('user_name'),
        connection_id=_to_int(data.get('connection_id')),
        start_time=start_time,
        uptime=uptime,
        connection_type=classify_uptime(uptime, provider),
        details=details,
        )
    logger.debug(f'Diagnostics for {provider}: {info.connection_type}')
    return info
