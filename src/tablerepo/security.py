"""
Sensitive-field hashing.

Fields named as sensitive are replaced by a one-way hash before they are
written. The hashing algorithm is pluggable through the `SecretHasher`
protocol; `BcryptHasher` is the implementation used by default.
"""
import logging
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

import bcrypt
from tablerepo.exceptions import ConfigurationError
from tablerepo.options import DEFAULT_SECRET_COST

logger = logging.getLogger(__name__)

__all__ = [
    'SecretHasher',
    'BcryptHasher',
    'parse_sensitive_fields',
    'apply_sensitive_fields',
]


@runtime_checkable
class SecretHasher(Protocol):
    """One-way hash of a plain-text secret at a given work factor.
    """

    def hash(self, plain_text: str, cost: int) -> str: ...


class BcryptHasher:
    """SecretHasher backed by the bcrypt library.
    """

    def hash(self, plain_text: str, cost: int = DEFAULT_SECRET_COST) -> str:
        salt = bcrypt.gensalt(rounds=cost)
        return bcrypt.hashpw(plain_text.encode('utf-8'), salt).decode('ascii')

    @staticmethod
    def verify(plain_text: str, hashed: str) -> bool:
        """Check a plain-text secret against a stored bcrypt hash.
        """
        return bcrypt.checkpw(plain_text.encode('utf-8'), hashed.encode('ascii'))


def parse_sensitive_fields(sensitive_fields: str | None) -> set[str]:
    """Split a comma-separated list of field names.

    Names are trimmed and lower-cased; blanks are dropped.

    >>> sorted(parse_sensitive_fields(' Password, ,pin '))
    ['password', 'pin']
    """
    if not sensitive_fields:
        return set()
    return {name.strip().lower() for name in sensitive_fields.split(',') if name.strip()}


def apply_sensitive_fields(fields: Mapping[str, Any], sensitive_fields: str | None,
                           hasher: SecretHasher | None,
                           cost: int = DEFAULT_SECRET_COST) -> dict[str, Any]:
    """Return a copy of `fields` with sensitive values hashed.

    Field names match case-insensitively. Null values are left null and names
    that match no field are ignored.

    Args:
        fields: Column name -> value payload
        sensitive_fields: Comma-separated field names, or None
        hasher: Hasher applied to each sensitive value
        cost: Work factor passed to the hasher

    Returns
        New dict; `fields` itself is not modified

    Raises
        ConfigurationError: if sensitive fields are requested without a hasher
    """
    names = parse_sensitive_fields(sensitive_fields)
    result = dict(fields)
    if not names:
        return result
    if hasher is None:
        raise ConfigurationError('Sensitive fields were given but no secret hasher is configured')

    for column, value in fields.items():
        if column.lower() not in names or value is None:
            continue
        result[column] = hasher.hash(str(value), cost)
        logger.debug(f'Hashed sensitive field {column}')
    return result
