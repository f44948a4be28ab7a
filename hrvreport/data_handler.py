"""
data_handler.py - Interval dataset with exclusion set
Parses plain-text RR uploads and historical session arrays into a stable,
indexed interval sequence that every analysis reads through filtered_view().
"""

import math
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from hrvreport.errors import LoadError, LoadErrorReason

logger = logging.getLogger(__name__)


# =========================
# Data structures
# =========================


@dataclass(frozen=True)
class Interval:
    value: float  # RR interval (ms), always > 0
    timestamp: Optional[datetime]  # aware UTC datetime, None if unknown
    original_index: int  # position in the loaded sequence, never renumbered

    @property
    def heart_rate(self) -> float:
        return 60000.0 / self.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "originalIndex": self.original_index,
        }


@dataclass
class ParseOutcome:
    intervals: List[Interval] = field(default_factory=list)
    skipped_lines: int = 0
    timestamps_synthesized: bool = False


# =========================
# Parsing helpers
# =========================


def _parse_value(token: str) -> Optional[float]:
    try:
        value = float(token.strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def _parse_timestamp(token: Any) -> Optional[datetime]:
    """
    Accepts epoch milliseconds (number or numeric string), ISO-8601 strings
    (a trailing 'Z' is allowed) and datetime objects. Naive values are UTC.
    """
    if token is None:
        return None
    if isinstance(token, datetime):
        ts = token
    elif isinstance(token, (int, float)) and not isinstance(token, bool):
        if not math.isfinite(token) or token <= 0:
            return None
        try:
            return datetime.fromtimestamp(token / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        text = str(token).strip()
        if not text:
            return None
        try:
            return _parse_timestamp(float(text))
        except ValueError:
            pass
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            ts = datetime.fromisoformat(text)
        except ValueError:
            return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _synthesize_timestamps(count: int, now: datetime, step_ms: int) -> List[datetime]:
    """Evenly spaced timestamps, step_ms apart, the last one at `now`"""
    step = timedelta(milliseconds=step_ms)
    start = now - step * (count - 1)
    return [start + step * i for i in range(count)]


def _coerce_float_list(x: Iterable[Any]) -> List[Optional[float]]:
    out = []
    for v in x:
        try:
            if v is None or isinstance(v, bool):
                out.append(None)
                continue
            value = float(v)
            out.append(value if math.isfinite(value) and value > 0 else None)
        except (TypeError, ValueError):
            out.append(None)
    return out


def parse_interval_text(
    raw_text: str,
    now: Optional[datetime] = None,
    step_ms: int = 1000,
) -> ParseOutcome:
    """
    Parse newline-separated RR records.

    Each line is either a bare value (ms) or a `timestamp,value` pair. Lines
    that do not yield a positive numeric value are skipped silently. If no
    line carries a valid timestamp, timestamps are synthesized one step_ms
    apart ending at `now`.

    Args:
        raw_text: Uploaded file contents
        now: Anchor for synthesized timestamps (defaults to current UTC time)
        step_ms: Spacing of synthesized timestamps

    Returns:
        ParseOutcome with intervals indexed 0..n-1 in file order

    Raises:
        LoadError(EMPTY_DATASET): If no valid interval remains
    """
    parsed: List[Tuple[float, Optional[datetime]]] = []
    skipped = 0

    for line in (raw_text or "").splitlines():
        parts = line.strip().split(",")
        timestamp = None
        if len(parts) == 2:
            timestamp = _parse_timestamp(parts[0])
            value = _parse_value(parts[1])
        elif len(parts) == 1:
            value = _parse_value(parts[0])
        else:
            value = None

        if value is None:
            skipped += 1
            continue
        parsed.append((value, timestamp))

    if not parsed:
        raise LoadError(
            LoadErrorReason.EMPTY_DATASET,
            "No valid RR interval data found. Please ensure the file contains "
            "positive numbers, one per line, or 'timestamp,rr_interval' pairs.",
        )

    synthesized = not any(ts is not None for _, ts in parsed)
    if synthesized:
        stamps = _synthesize_timestamps(
            len(parsed), now or datetime.now(timezone.utc), step_ms
        )
        parsed = [(value, stamps[i]) for i, (value, _) in enumerate(parsed)]

    intervals = [
        Interval(value=value, timestamp=ts, original_index=i)
        for i, (value, ts) in enumerate(parsed)
    ]
    return ParseOutcome(
        intervals=intervals, skipped_lines=skipped, timestamps_synthesized=synthesized
    )


def build_intervals(
    values: Sequence[Any],
    timestamps: Optional[Sequence[Any]] = None,
    now: Optional[datetime] = None,
    step_ms: int = 1000,
) -> ParseOutcome:
    """
    Ingestion path for array sources (historical sessions).

    Invalid values are dropped together with their timestamp; the remaining
    intervals are reindexed 0..n-1. Missing or unusable timestamps are
    synthesized the same way parse_interval_text does.
    """
    coerced = _coerce_float_list(values)
    stamps: List[Optional[datetime]] = []
    if timestamps is not None:
        stamps = [_parse_timestamp(t) for t in timestamps]

    parsed: List[Tuple[float, Optional[datetime]]] = []
    skipped = 0
    for i, value in enumerate(coerced):
        if value is None:
            skipped += 1
            continue
        parsed.append((value, stamps[i] if i < len(stamps) else None))

    if not parsed:
        raise LoadError(
            LoadErrorReason.NO_INTERVAL_DATA, "No usable RR interval data in source."
        )

    synthesized = not any(ts is not None for _, ts in parsed)
    if synthesized:
        generated = _synthesize_timestamps(
            len(parsed), now or datetime.now(timezone.utc), step_ms
        )
        parsed = [(value, generated[i]) for i, (value, _) in enumerate(parsed)]

    intervals = [
        Interval(value=value, timestamp=ts, original_index=i)
        for i, (value, ts) in enumerate(parsed)
    ]
    return ParseOutcome(
        intervals=intervals, skipped_lines=skipped, timestamps_synthesized=synthesized
    )


# =========================
# Dataset
# =========================


class IntervalDataset:
    """
    Loaded RR intervals plus the set of excluded original indices.

    Exclusion toggling never removes intervals; filtered_view() is the only
    input analyses ever see. `revision` increases on every mutation so that
    render results computed from an older filtered view can be recognised.
    """

    def __init__(self, step_ms: int = 1000):
        self.step_ms = step_ms
        self._intervals: Tuple[Interval, ...] = ()
        self._excluded: set = set()
        self.revision = 0

    def __len__(self) -> int:
        return len(self._intervals)

    @property
    def is_empty(self) -> bool:
        return not self._intervals

    @property
    def intervals(self) -> Tuple[Interval, ...]:
        return self._intervals

    @property
    def excluded_indices(self) -> frozenset:
        return frozenset(self._excluded)

    def load(self, raw_text: str, now: Optional[datetime] = None) -> ParseOutcome:
        """
        Replace the dataset with parsed text and clear exclusions.

        Raises:
            LoadError: If nothing valid was parsed; the dataset is unchanged
        """
        outcome = parse_interval_text(raw_text, now=now, step_ms=self.step_ms)
        self._replace(outcome.intervals)
        logger.info(
            "Loaded %d RR intervals (%d lines skipped, timestamps synthesized: %s)",
            len(outcome.intervals),
            outcome.skipped_lines,
            outcome.timestamps_synthesized,
        )
        return outcome

    def load_file(self, path: str, now: Optional[datetime] = None) -> ParseOutcome:
        try:
            with open(path, "r", encoding="utf-8-sig") as f:
                raw_text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(
                LoadErrorReason.PARSE_FAILURE, f"Error reading file: {e}"
            ) from e
        return self.load(raw_text, now=now)

    def load_values(
        self,
        values: Sequence[Any],
        timestamps: Optional[Sequence[Any]] = None,
        now: Optional[datetime] = None,
    ) -> ParseOutcome:
        outcome = build_intervals(values, timestamps, now=now, step_ms=self.step_ms)
        self._replace(outcome.intervals)
        return outcome

    def clear(self) -> None:
        self._replace([])

    def toggle_exclusion(self, original_index: int) -> bool:
        """
        Flip exclusion of one interval.

        Returns:
            bool: False (and no change) if the index is not in the dataset
        """
        if not 0 <= original_index < len(self._intervals):
            return False
        if original_index in self._excluded:
            self._excluded.discard(original_index)
        else:
            self._excluded.add(original_index)
        self.revision += 1
        return True

    def is_excluded(self, original_index: int) -> bool:
        return original_index in self._excluded

    def reset_exclusions(self) -> None:
        self._excluded.clear()
        self.revision += 1

    def filtered_view(self) -> Tuple[Interval, ...]:
        """Intervals not currently excluded, in original order"""
        return tuple(
            item for item in self._intervals if not self.is_excluded(item.original_index)
        )

    def values(self) -> List[float]:
        return [item.value for item in self._intervals]

    def filtered_values(self) -> np.ndarray:
        return np.array([item.value for item in self.filtered_view()], dtype=float)

    def summary(self) -> Dict[str, Any]:
        filtered = self.filtered_values()
        return {
            "n_loaded": len(self._intervals),
            "n_excluded": len(self._excluded),
            "n_filtered": int(filtered.size),
            "mean_RRI_ms": float(np.mean(filtered)) if filtered.size else None,
            "duration_s": float(np.sum(filtered) / 1000.0) if filtered.size else 0.0,
        }

    def to_record(self) -> Dict[str, Any]:
        return {
            "intervals": [item.to_dict() for item in self._intervals],
            "excluded": sorted(self._excluded),
        }

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]], step_ms: int = 1000) -> "IntervalDataset":
        dataset = cls(step_ms=step_ms)
        dataset.restore(record)
        return dataset

    def restore(self, record: Optional[Dict[str, Any]]) -> None:
        """Restore from to_record() output; unusable entries are dropped"""
        if not record:
            self.clear()
            return

        intervals = []
        for item in record.get("intervals", []):
            value = _parse_value(str(item.get("value")))
            if value is None:
                continue
            intervals.append(
                Interval(
                    value=value,
                    timestamp=_parse_timestamp(item.get("timestamp")),
                    original_index=len(intervals),
                )
            )
        self._replace(intervals)
        for index in record.get("excluded", []):
            if isinstance(index, int) and 0 <= index < len(self._intervals):
                self._excluded.add(index)

    def _replace(self, intervals: Sequence[Interval]) -> None:
        self._intervals = tuple(intervals)
        self._excluded = set()
        self.revision += 1
