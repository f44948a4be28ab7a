"""
distributions.py - Equal-width histograms for RR, heart rate and
successive-difference distributions
"""

import math
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np


@dataclass
class HistogramResult:
    edges: np.ndarray  # len(counts) + 1 bin edges
    counts: np.ndarray
    labels: List[str] = field(default_factory=list)

    @property
    def n_bins(self) -> int:
        return int(len(self.counts))

    @property
    def total(self) -> int:
        return int(np.sum(self.counts))


def _format_edge(value: float, decimals: int) -> str:
    return f"{value:.{decimals}f}"


def bin_labels(edges: np.ndarray, decimals: int = 1) -> List[str]:
    """Human-readable 'low - high' labels for each bin"""
    return [
        f"{_format_edge(edges[i], decimals)} - {_format_edge(edges[i + 1], decimals)}"
        for i in range(len(edges) - 1)
    ]


def histogram(
    values: Sequence[float], rule: str = "sqrt", decimals: int = 1
) -> HistogramResult:
    """
    Bin a sample into equal-width bins

    Args:
        values: Finite sample values
        rule: "sqrt" for ceil(sqrt(n)) bins between min and max, otherwise a
            numpy bin-edge rule name ("sturges", "scott", "fd", "auto")
        decimals: Precision of the bin labels

    Returns:
        HistogramResult; empty arrays for an empty sample, a single bin
        holding every value when all values are identical
    """
    data = np.asarray(values, dtype=float)
    data = data[np.isfinite(data)]

    if data.size == 0:
        return HistogramResult(edges=np.array([]), counts=np.array([], dtype=int))

    low = float(np.min(data))
    high = float(np.max(data))

    if low == high:
        edges = np.array([low, high])
        counts = np.array([data.size], dtype=int)
        return HistogramResult(edges=edges, counts=counts, labels=bin_labels(edges, decimals))

    if rule == "sqrt":
        n_bins = int(math.ceil(math.sqrt(data.size)))
        edges = np.linspace(low, high, n_bins + 1)
    else:
        edges = np.histogram_bin_edges(data, bins=rule)

    # np.histogram closes the last bin on the right, so the max lands in it
    counts, edges = np.histogram(data, bins=edges)
    return HistogramResult(
        edges=edges, counts=counts.astype(int), labels=bin_labels(edges, decimals)
    )
