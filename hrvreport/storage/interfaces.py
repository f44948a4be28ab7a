"""Abstract interface for the key-value record store.

The report builder only needs four narrow capabilities from its host:
get, get_all, put and delete over named collections of JSON-compatible
records. Implementations can be in-memory, file-based or backed by a
database; all methods are coroutines because host storage may suspend.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

Record = Dict[str, Any]
RecordKey = Union[int, str]

KEY_FIELD = "id"


class RecordStore(ABC):
    """Collection-partitioned record storage.

    Records are dicts keyed by their ``"id"`` field. ``put`` assigns an
    auto-incremented integer id when the record has none and otherwise
    replaces the stored record in a single write.
    """

    @abstractmethod
    async def get(self, collection: str, key: RecordKey) -> Optional[Record]:
        """Return the record stored under ``key`` or None if absent."""
        pass

    @abstractmethod
    async def get_all(self, collection: str) -> List[Record]:
        """Return every record of a collection (order not guaranteed).

        Unknown collections yield an empty list.
        """
        pass

    @abstractmethod
    async def put(self, collection: str, record: Record) -> RecordKey:
        """Insert or replace a record and return its key."""
        pass

    @abstractmethod
    async def delete(self, collection: str, key: RecordKey) -> None:
        """Remove a record; deleting a missing key is not an error."""
        pass


def next_key(existing: Dict[RecordKey, Record]) -> int:
    """Auto-increment key: one past the largest integer key in use."""
    int_keys = [k for k in existing if isinstance(k, int) and not isinstance(k, bool)]
    return (max(int_keys) + 1) if int_keys else 1
