"""
session_loader.py - Historical measurement sessions

Lists stored rest-measurement sessions from the configured session
collections and extracts their RR arrays for the interval dataset.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

import pandas as pd

from hrvreport.config import ReportConfig
from hrvreport.errors import LoadError, LoadErrorReason
from hrvreport.storage.interfaces import RecordKey, RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSummary:
    collection: str
    session_id: RecordKey
    kind_label: str  # "Simple" / "Advanced"
    date: Optional[str]
    duration_min: Optional[float]

    @property
    def label(self) -> str:
        duration = f"{self.duration_min:.0f}" if self.duration_min is not None else "--"
        return f"{self.kind_label} Measurement - {self.date or '--'} ({duration} min)"

    @property
    def selector(self) -> str:
        """'collection|id' form used by command line and host selectors"""
        return f"{self.collection}|{self.session_id}"


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class HistoricalSessionLoader:
    def __init__(self, store: RecordStore, config: Optional[ReportConfig] = None):
        self.store = store
        self.config = config or ReportConfig()

    async def list_available_sessions(self) -> List[SessionSummary]:
        """
        All stored sessions, newest first by date.

        Sessions whose date cannot be parsed are listed last, in store order.
        """
        summaries = []
        for collection, kind_label in self.config.session_collections.items():
            for record in await self.store.get_all(collection):
                if "id" not in record:
                    continue
                summaries.append(
                    SessionSummary(
                        collection=collection,
                        session_id=record["id"],
                        kind_label=kind_label,
                        date=str(record["date"]) if record.get("date") is not None else None,
                        duration_min=_as_float(record.get("duration")),
                    )
                )

        def sort_key(summary: SessionSummary):
            parsed = pd.to_datetime(summary.date, errors="coerce", utc=True)
            return pd.isna(parsed), -(parsed.value if not pd.isna(parsed) else 0)

        return sorted(summaries, key=sort_key)

    async def fetch_session_intervals(
        self, collection: str, session_id: RecordKey
    ) -> Tuple[List[Any], Optional[List[Any]]]:
        """
        Raw RR values and optional per-point timestamps of one session.

        Prefers rawRrData and falls back to filteredRrData.

        Raises:
            LoadError(NO_INTERVAL_DATA): Unknown session or no usable RR array
            LoadError(PARSE_FAILURE): RR data is not a list
        """
        if collection not in self.config.session_collections:
            raise LoadError(
                LoadErrorReason.NO_INTERVAL_DATA,
                f"Unknown session collection: {collection}",
            )

        record = await self.store.get(collection, session_id)
        if record is None and isinstance(session_id, str) and session_id.isdigit():
            record = await self.store.get(collection, int(session_id))
        if record is None:
            raise LoadError(LoadErrorReason.NO_INTERVAL_DATA, "Historical session not found.")

        values = record.get("rawRrData") or record.get("filteredRrData")
        if values is None or (isinstance(values, Sequence) and not isinstance(values, str) and len(values) == 0):
            raise LoadError(
                LoadErrorReason.NO_INTERVAL_DATA,
                "Selected historical session has no RR interval data.",
            )
        if not isinstance(values, list):
            raise LoadError(
                LoadErrorReason.PARSE_FAILURE,
                "Historical session RR data is not a list of values.",
            )

        timestamps = record.get("timestamps")
        if not isinstance(timestamps, list):
            timestamps = None

        logger.info(
            "Fetched %d RR values from %s|%s", len(values), collection, session_id
        )
        return values, timestamps
