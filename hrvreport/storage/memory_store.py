"""In-memory record store, used by tests and as a scratch backend."""

import copy
from typing import Dict, List, Optional

from hrvreport.storage.interfaces import (
    KEY_FIELD,
    Record,
    RecordKey,
    RecordStore,
    next_key,
)


class MemoryRecordStore(RecordStore):
    """Dict-of-dicts store; records are deep-copied on the way in and out."""

    def __init__(self, initial: Optional[Dict[str, List[Record]]] = None):
        self._collections: Dict[str, Dict[RecordKey, Record]] = {}
        for collection, records in (initial or {}).items():
            for record in records:
                self._put_sync(collection, record)

    async def get(self, collection: str, key: RecordKey) -> Optional[Record]:
        record = self._collections.get(collection, {}).get(key)
        return copy.deepcopy(record) if record is not None else None

    async def get_all(self, collection: str) -> List[Record]:
        return [copy.deepcopy(r) for r in self._collections.get(collection, {}).values()]

    async def put(self, collection: str, record: Record) -> RecordKey:
        return self._put_sync(collection, record)

    async def delete(self, collection: str, key: RecordKey) -> None:
        self._collections.get(collection, {}).pop(key, None)

    def _put_sync(self, collection: str, record: Record) -> RecordKey:
        records = self._collections.setdefault(collection, {})
        stored = copy.deepcopy(record)
        key = stored.get(KEY_FIELD)
        if key is None:
            key = next_key(records)
            stored[KEY_FIELD] = key
        records[key] = stored
        return key
