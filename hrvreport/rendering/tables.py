"""
tables.py - Tabular render mode

Builds pandas DataFrames for every analysis kind, plus the column catalogs
of the list reports and the comprehensive user report.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from hrvreport.data_handler import Interval
from hrvreport.metrics.distributions import histogram
from hrvreport.metrics.nonlinear import poincare_points
from hrvreport.metrics.time_domain import METRIC_LABELS, successive_differences

MISSING = "--"

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}")


# =========================
# Column catalogs
# =========================

# (record field, header) pairs per list collection
USER_PROFILE_COLUMNS = [
    ("id", "User ID"),
    ("email", "Email"),
    ("firstName", "First Name"),
    ("lastName", "Last Name"),
    ("age", "Age"),
    ("gender", "Gender"),
    ("weight", "Weight (kg)"),
    ("height", "Height (cm)"),
    ("fatPercentage", "Fat %"),
    ("userBaseAtHR", "Base AT HR"),
]

MEMBER_COLUMNS = [
    ("id", "Member ID"),
    ("name", "Name"),
    ("email", "Email"),
    ("phone", "Phone"),
    ("membershipStatus", "Membership Status"),
    ("joinDate", "Join Date"),
]

SUBSCRIPTION_COLUMNS = [
    ("id", "Subscription ID"),
    ("memberId", "Member ID"),
    ("planName", "Plan Name"),
    ("startDate", "Start Date"),
    ("endDate", "End Date"),
    ("status", "Status"),
    ("price", "Price"),
]

FINANCE_COLUMNS = [
    ("id", "Transaction ID"),
    ("type", "Type"),
    ("amount", "Amount"),
    ("date", "Date"),
    ("description", "Description"),
]


@dataclass(frozen=True)
class SectionSpec:
    key: str
    title: str
    collection: str
    columns: Tuple[Tuple[str, str], ...]
    interpretation: str
    sort_field: Optional[str] = None  # newest-first + row limit when set
    group: Optional[str] = None  # sub-sections sharing one heading


COMPREHENSIVE_SECTIONS = (
    SectionSpec(
        "trainingSessions",
        "Training Sessions Overview",
        "trainingSessions",
        (("date", "Date"), ("duration", "Duration (min)"), ("avgHr", "Avg HR (BPM)"), ("rmssd", "RMSSD (ms)")),
        "training_interpretation",
        sort_field="date",
    ),
    SectionSpec(
        "sleepData",
        "Sleep Patterns",
        "sleepData",
        (("date", "Date"), ("durationHours", "Duration (hrs)"), ("quality", "Quality"), ("awakenings", "Awakenings")),
        "sleep_interpretation",
        sort_field="date",
    ),
    SectionSpec(
        "nutrition",
        "Nutrition Programs",
        "assignedNutritionPrograms",
        (("programName", "Program Name"), ("assignedDate", "Assigned Date"), ("status", "Status")),
        "nutrition_interpretation",
    ),
    SectionSpec(
        "testProtocols",
        "Test Results",
        "testProtocols",
        (("name", "Test Name"), ("date", "Date"), ("result", "Result")),
        "tests_interpretation",
        sort_field="date",
    ),
    SectionSpec(
        "logs",
        "Recent Activity Logs",
        "logs",
        (("timestamp", "Timestamp"), ("type", "Type"), ("description", "Description")),
        "logs_interpretation",
        sort_field="timestamp",
    ),
    SectionSpec(
        "memberActivity",
        "Member Progress Overview",
        "memberActivity",
        (("date", "Date"), ("type", "Activity Type"), ("value", "Value"), ("unit", "Unit")),
        "progress_interpretation",
        sort_field="date",
    ),
    SectionSpec(
        "customMeasurements",
        "Custom Measurements",
        "customMeasurements",
        (("date", "Date"), ("name", "Measurement Name"), ("value", "Value"), ("unit", "Unit")),
        "custom_measurements_interpretation",
        sort_field="date",
    ),
    SectionSpec(
        "trainingDays",
        "Training Days",
        "trainingDays",
        (("date", "Date"), ("notes", "Notes")),
        "training_schedules_interpretation",
        group="Training Schedules",
    ),
    SectionSpec(
        "trainingWeeks",
        "Training Weeks",
        "trainingWeeks",
        (("startDate", "Start Date"), ("endDate", "End Date"), ("goal", "Goal")),
        "training_schedules_interpretation",
        group="Training Schedules",
    ),
    SectionSpec(
        "trainingBlocks",
        "Training Blocks",
        "trainingBlocks",
        (("name", "Name"), ("type", "Type"), ("duration", "Duration")),
        "training_schedules_interpretation",
        group="Training Schedules",
    ),
    SectionSpec(
        "configuredSessions",
        "Configured Sessions",
        "configuredSessions",
        (("name", "Name"), ("sport", "Sport"), ("difficulty", "Difficulty")),
        "training_schedules_interpretation",
        group="Training Schedules",
    ),
    SectionSpec(
        "lessons",
        "Lessons Overview",
        "lessons",
        (("date", "Date"), ("name", "Lesson Name"), ("instructor", "Instructor"), ("duration", "Duration (min)")),
        "lessons_interpretation",
        sort_field="date",
    ),
    SectionSpec(
        "gymSections",
        "Gym Sections",
        "gymSections",
        (("name", "Section Name"), ("capacity", "Capacity"), ("currentOccupancy", "Current Occupancy")),
        "gym_sections_interpretation",
    ),
)

NUTRITION_PROGRAMS_COLLECTION = "nutritionPrograms"


# =========================
# Value formatting
# =========================


def _title_case(key: str) -> str:
    spaced = re.sub(r"([A-Z])", r" \1", key)
    return spaced[:1].upper() + spaced[1:]


def format_value(value: Any) -> str:
    """Display form of a record value (numbers to 2 decimals, dates, Yes/No)"""
    if value is None:
        return MISSING
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float):
        if np.isnan(value):
            return MISSING
        return f"{value:.2f}"
    if isinstance(value, (int, np.integer)):
        return str(value)
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, str) and _ISO_DATE.match(value):
        parsed = pd.to_datetime(value, errors="coerce", utc=True)
        if not pd.isna(parsed):
            return parsed.strftime("%Y-%m-%d %H:%M")
    return str(value)


def _format_timestamp(ts: Optional[datetime]) -> str:
    return ts.isoformat(timespec="milliseconds") if ts is not None else MISSING


def record_table(
    records: Sequence[Dict[str, Any]],
    columns: Optional[Sequence[Tuple[str, str]]] = None,
) -> pd.DataFrame:
    """
    Generic record table

    Args:
        records: Rows as dicts
        columns: (field, header) pairs; defaults to the keys of the first
            record with camelCase turned into Title Case

    Returns:
        DataFrame of formatted strings (empty if there are no records)
    """
    if not records:
        headers = [h for _, h in columns] if columns else []
        return pd.DataFrame(columns=headers)

    if columns is None:
        columns = [(key, _title_case(key)) for key in records[0].keys()]

    rows = [[format_value(record.get(key)) for key, _ in columns] for record in records]
    return pd.DataFrame(rows, columns=[header for _, header in columns])


def most_recent(
    records: Sequence[Dict[str, Any]], sort_field: str, limit: int
) -> List[Dict[str, Any]]:
    """Newest-first by a date field; undated records go last"""
    keyed = []
    for record in records:
        parsed = pd.to_datetime(record.get(sort_field), errors="coerce", utc=True)
        keyed.append((pd.isna(parsed), parsed if not pd.isna(parsed) else None, record))

    dated = sorted(
        (item for item in keyed if not item[0]), key=lambda item: item[1], reverse=True
    )
    undated = [item for item in keyed if item[0]]
    return [record for _, _, record in (dated + undated)[:limit]]


def join_nutrition_programs(
    assigned: Sequence[Dict[str, Any]], programs: Sequence[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    names = {p.get("id"): p.get("name") for p in programs}
    return [
        {
            "programName": names.get(a.get("programId")) or "N/A",
            "assignedDate": a.get("assignedDate"),
            "status": a.get("status"),
        }
        for a in assigned
    ]


# =========================
# Interval tables
# =========================


def poincare_table(values: Sequence[float]) -> pd.DataFrame:
    x, y = poincare_points(values)
    return pd.DataFrame({"RRn (ms)": np.round(x, 2), "RRn+1 (ms)": np.round(y, 2)})


def histogram_table(
    values: Sequence[float], label: str, rule: str = "sqrt"
) -> pd.DataFrame:
    result = histogram(values, rule=rule)
    return pd.DataFrame({f"{label} Bin": result.labels, "Count": result.counts})


def time_series_table(
    values: Sequence[float], timestamps: Sequence[Optional[datetime]], label: str
) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "Index": np.arange(1, len(values) + 1),
            "Timestamp": [_format_timestamp(ts) for ts in timestamps],
            label: np.round(np.asarray(values, dtype=float), 2),
        }
    )


def successive_diff_table(values: Sequence[float], rule: str = "sqrt") -> pd.DataFrame:
    return histogram_table(successive_differences(values), "Difference (ms)", rule=rule)


def summary_table(metrics: Optional[Dict[str, Any]]) -> pd.DataFrame:
    """Metric/Value table; N/A values when metrics could not be computed"""
    rows = []
    for key, (name, unit) in METRIC_LABELS.items():
        value = metrics.get(key) if metrics else None
        if value is None:
            text = "N/A"
        elif isinstance(value, float):
            text = f"{value:.2f} {unit}".strip()
        else:
            text = f"{value} {unit}".strip()
        rows.append({"Metric": name, "Value": text})
    return pd.DataFrame(rows, columns=["Metric", "Value"])


def raw_table(intervals: Sequence[Interval]) -> pd.DataFrame:
    """Every filtered interval with its timestamp, unmodified"""
    return pd.DataFrame(
        {
            "Original Index": [item.original_index for item in intervals],
            "Timestamp": [_format_timestamp(item.timestamp) for item in intervals],
            "RR (ms)": [item.value for item in intervals],
        }
    )
