"""
context.py - Inputs handed to render functions
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from hrvreport.config import ReportConfig
from hrvreport.data_handler import Interval


@dataclass
class RenderContext:
    """
    Everything a render function may read.

    Interval-based kinds read `intervals` (the filtered view); list kinds
    read `records`; the comprehensive report reads `profile` and `sections`.
    """

    target_id: str
    intervals: Tuple[Interval, ...] = ()
    records: List[Dict[str, Any]] = field(default_factory=list)
    profile: Optional[Dict[str, Any]] = None
    sections: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    config: ReportConfig = field(default_factory=ReportConfig)

    @property
    def values(self) -> np.ndarray:
        return np.array([item.value for item in self.intervals], dtype=float)

    @property
    def heart_rates(self) -> np.ndarray:
        return 60000.0 / self.values if self.intervals else np.array([])

    @property
    def timestamps(self) -> list:
        return [item.timestamp for item in self.intervals]


@dataclass
class ReportSection:
    """One titled block of the comprehensive report"""

    title: str
    table: Optional[pd.DataFrame]
    text: str = ""
    level: int = 1

    @property
    def has_data(self) -> bool:
        return self.table is not None and not self.table.empty
