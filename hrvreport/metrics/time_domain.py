import numpy as np
from typing import Dict, Optional, Sequence, Union


def heart_rate_bpm(rr_ms: Sequence[float]) -> np.ndarray:
    """Instantaneous heart rate (bpm) for each RR interval in ms"""
    rr = np.asarray(rr_ms, dtype=float)
    return 60000.0 / rr


def successive_differences(rr_ms: Sequence[float]) -> np.ndarray:
    """
    Signed successive differences RR[i+1] - RR[i]

    Returns:
        Array of length n-1 (empty for fewer than 2 intervals)
    """
    rr = np.asarray(rr_ms, dtype=float)
    if rr.size < 2:
        return np.array([])
    return np.diff(rr)


class HRVTimeDomainAnalysis:
    """
    Time domain summary of a filtered RR sequence
    Follows the Task Force of ESC/NASPE definitions; SDNN and SDSD use
    the sample standard deviation (ddof=1)
    """

    def __init__(self, rr_ms: Sequence[float]):
        """
        Args:
            rr_ms: Filtered RR intervals in milliseconds

        Raises:
            ValueError: If fewer than 2 intervals are given
        """
        self.rr_ms = np.array(rr_ms, dtype=float)

        if len(self.rr_ms) < 2:
            raise ValueError("At least 2 RR intervals needed for time domain analysis")

        self._diff = np.diff(self.rr_ms)

    def sdnn(self) -> float:
        """Standard deviation of RR intervals, reflects overall HRV"""
        return float(np.std(self.rr_ms, ddof=1))

    def rmssd(self) -> float:
        """
        Root mean square of successive differences
        Reflects short-term HRV and parasympathetic activity
        """
        return float(np.sqrt(np.mean(self._diff**2)))

    def sdsd(self) -> float:
        """Standard deviation of successive differences"""
        if len(self._diff) < 2:
            return 0.0
        return float(np.std(self._diff, ddof=1))

    def nn50(self) -> int:
        """Count of successive RR interval differences > 50ms"""
        return int(np.sum(np.abs(self._diff) > 50))

    def pnn50(self) -> float:
        """Percentage of successive RR interval differences > 50ms"""
        total = len(self._diff)
        return (self.nn50() / total) * 100 if total > 0 else 0.0

    def mean_rr(self) -> float:
        return float(np.mean(self.rr_ms))

    def median_rr(self) -> float:
        return float(np.median(self.rr_ms))

    def mean_hr(self) -> float:
        """Mean heart rate (bpm) from the mean RR interval"""
        mean_rr = self.mean_rr()
        return 60000.0 / mean_rr if mean_rr > 0 else 0.0

    def summary(self) -> Dict[str, Union[float, int]]:
        return {
            "count": int(len(self.rr_ms)),
            "min_rr": float(np.min(self.rr_ms)),
            "max_rr": float(np.max(self.rr_ms)),
            "mean_rr": self.mean_rr(),
            "median_rr": self.median_rr(),
            "sdnn": self.sdnn(),
            "rmssd": self.rmssd(),
            "sdsd": self.sdsd(),
            "nn50": self.nn50(),
            "pnn50": self.pnn50(),
            "mean_hr": self.mean_hr(),
        }


def calculate_metrics(rr_ms: Sequence[float]) -> Optional[Dict[str, Union[float, int]]]:
    """
    Summary metrics for an RR sequence

    Returns:
        Metrics dict, or None when fewer than 2 intervals are available
    """
    if len(rr_ms) < 2:
        return None
    return HRVTimeDomainAnalysis(rr_ms).summary()


# Display names and units used by tables, texts and exports
METRIC_LABELS = {
    "count": ("Count", ""),
    "min_rr": ("Min RR", "ms"),
    "max_rr": ("Max RR", "ms"),
    "mean_rr": ("Mean RR", "ms"),
    "median_rr": ("Median RR", "ms"),
    "sdnn": ("SDNN", "ms"),
    "rmssd": ("RMSSD", "ms"),
    "sdsd": ("SDSD", "ms"),
    "nn50": ("NN50", ""),
    "pnn50": ("pNN50", "%"),
    "mean_hr": ("Average HR", "bpm"),
}
