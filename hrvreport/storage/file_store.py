"""File-based record store.

Stores each collection as one JSON document:
    {root_dir}/
    ├── reportState.json        # {"records": [{"id": ..., ...}, ...]}
    ├── restSessionsFree.json
    └── ...

Every write serializes the full collection to a temporary file in the same
directory and swaps it in with ``os.replace``, so readers see either the old
or the new document and never a partial one.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Union

from hrvreport.storage.interfaces import (
    KEY_FIELD,
    Record,
    RecordKey,
    RecordStore,
    next_key,
)

logger = logging.getLogger(__name__)


def _sanitize_collection(name: str) -> str:
    """Sanitize a collection name for use as a filename."""
    invalid_chars = '<>:"/\\|?*'
    result = name
    for char in invalid_chars:
        result = result.replace(char, "_")
    result = result.strip(". ")
    return result or "unnamed"


class JsonFileRecordStore(RecordStore):
    """JSON-file implementation of the record store.

    Example:
        >>> store = JsonFileRecordStore("./hrv_state")
        >>> key = await store.put("reportState", {"id": "hrvReportPages", "pages": []})
        >>> await store.get("reportState", key)
    """

    def __init__(self, root_dir: Union[str, Path]):
        self.root_dir = Path(root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    async def get(self, collection: str, key: RecordKey) -> Optional[Record]:
        records = await asyncio.to_thread(self._read_collection, collection)
        return records.get(key)

    async def get_all(self, collection: str) -> List[Record]:
        records = await asyncio.to_thread(self._read_collection, collection)
        return list(records.values())

    async def put(self, collection: str, record: Record) -> RecordKey:
        async with self._lock:
            return await asyncio.to_thread(self._put_sync, collection, record)

    async def delete(self, collection: str, key: RecordKey) -> None:
        async with self._lock:
            await asyncio.to_thread(self._delete_sync, collection, key)

    def _path_for(self, collection: str) -> Path:
        return self.root_dir / f"{_sanitize_collection(collection)}.json"

    def _read_collection(self, collection: str) -> Dict[RecordKey, Record]:
        path = self._path_for(collection)
        if not path.exists():
            return {}
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
        records: Dict[RecordKey, Record] = {}
        for record in payload.get("records", []):
            records[record[KEY_FIELD]] = record
        return records

    def _write_collection(self, collection: str, records: Dict[RecordKey, Record]) -> None:
        path = self._path_for(collection)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{path.stem}-", suffix=".tmp", dir=str(self.root_dir)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({"records": list(records.values())}, f, indent=2, default=str)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def _put_sync(self, collection: str, record: Record) -> RecordKey:
        records = self._read_collection(collection)
        stored = dict(record)
        key = stored.get(KEY_FIELD)
        if key is None:
            key = next_key(records)
            stored[KEY_FIELD] = key
        records[key] = stored
        self._write_collection(collection, records)
        logger.debug("Stored record %r in %s", key, collection)
        return key

    def _delete_sync(self, collection: str, key: RecordKey) -> None:
        records = self._read_collection(collection)
        if records.pop(key, None) is not None:
            self._write_collection(collection, records)
