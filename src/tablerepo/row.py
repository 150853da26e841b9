"""Generic row records returned by the repository."""
import datetime
import decimal
import uuid
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

import sqlalchemy as sa

# Values a Record can hold; None represents SQL NULL
RecordValue = (None | bool | int | float | decimal.Decimal | str | bytes
               | uuid.UUID | datetime.date | datetime.datetime | datetime.time
               | datetime.timedelta | dict | list)


class Record(Mapping[str, RecordValue]):
    """Immutable ordered mapping from column name to value.

    Column order and spelling are preserved as the engine returned them;
    lookups ignore case, so ``record['ID']`` and ``record['id']`` agree.
    When two columns differ only by case, the first one wins for lookup
    and both are still iterated.
    Records are not hashable; json and array columns come back as dict and
    list values.
    """

    __slots__ = ('_items', '_index')

    def __init__(self, items: Iterable[tuple[str, RecordValue]] = ()) -> None:
        self._items: tuple[tuple[str, RecordValue], ...] = tuple(
            (str(name), _normalize(value)) for name, value in items)
        index: dict[str, int] = {}
        for i, (name, _) in enumerate(self._items):
            index.setdefault(name.casefold(), i)
        self._index = index

    @classmethod
    def from_row(cls, row: sa.Row) -> 'Record':
        """Create a Record from a SQLAlchemy result row.
        """
        return cls(zip(row._fields, row))

    def __getitem__(self, key: str) -> RecordValue:
        try:
            return self._items[self._index[key.casefold()]][1]
        except (KeyError, AttributeError):
            raise KeyError(key) from None

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.casefold() in self._index

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Record):
            return self._items == other._items
        if isinstance(other, Mapping):
            return dict(self._items) == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        body = ', '.join(f'{name!r}: {value!r}' for name, value in self._items)
        return f'Record({{{body}}})'

    def to_dict(self) -> dict[str, RecordValue]:
        """Return a plain dict copy in column order.
        """
        return dict(self._items)


def _normalize(value: Any) -> RecordValue:
    """Map driver-specific values onto the RecordValue union.
    """
    if isinstance(value, (memoryview, bytearray)):
        return bytes(value)
    return value
