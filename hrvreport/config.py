"""
config.py - Report builder configuration
Defaults live here; a JSON file and keyword overrides are merged on top.
"""

import json
import os
from dataclasses import dataclass, field, fields, asdict
from typing import Any, Dict, Optional


DEFAULT_SESSION_COLLECTIONS = {
    "restSessionsFree": "Simple",
    "restSessionsAdvanced": "Advanced",
}

ORIENTATIONS = ("portrait", "landscape")


@dataclass
class ReportConfig:
    # Interval ingestion
    synthetic_step_ms: int = 1000

    # Analysis parameters
    histogram_rule: str = "sqrt"
    resampling_rate_hz: float = 4.0
    min_spectral_duration_s: float = 60.0

    # Notifications
    notification_duration_ms: int = 3000

    # Persistence
    state_collection: str = "reportState"
    report_key: str = "hrvReportPages"
    dataset_key: str = "hrvPrintData"
    session_collections: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_SESSION_COLLECTIONS)
    )

    # Report content
    comprehensive_recent_limit: int = 5
    page_orientation: str = "portrait"
    user_id: Optional[str] = None

    def __post_init__(self):
        if self.synthetic_step_ms <= 0:
            raise ValueError("synthetic_step_ms must be positive")
        if self.resampling_rate_hz <= 0:
            raise ValueError("resampling_rate_hz must be positive")
        if self.page_orientation not in ORIENTATIONS:
            raise ValueError(
                f"page_orientation must be one of {ORIENTATIONS}, got {self.page_orientation!r}"
            )
        if not self.session_collections:
            raise ValueError("At least one session collection is required")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Optional[str] = None, **overrides) -> ReportConfig:
    """
    Build a ReportConfig from defaults, an optional JSON file and overrides.

    Args:
        path: JSON file with a flat object of config values. Falls back to the
            HRVREPORT_CONFIG environment variable when not given.
        **overrides: Values that take precedence over the file

    Returns:
        ReportConfig instance

    Raises:
        ValueError: On unknown keys or invalid values
        FileNotFoundError: If an explicit path does not exist
    """
    values: Dict[str, Any] = {}

    path = path or os.environ.get("HRVREPORT_CONFIG")
    if path:
        if not os.path.isfile(path):
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            file_values = json.load(f)
        if not isinstance(file_values, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")
        values.update(file_values)

    values.update({k: v for k, v in overrides.items() if v is not None})

    known = {f.name for f in fields(ReportConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

    return ReportConfig(**values)
