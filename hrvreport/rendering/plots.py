"""
plots.py - Graph render mode
Every builder returns a new matplotlib Figure; ownership passes to the
caller (normally the ChartRegistry).
"""

from datetime import datetime
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from hrvreport.metrics.distributions import histogram
from hrvreport.metrics.nonlinear import poincare_analysis, poincare_points

DEFAULT_FIGSIZE = (8, 5)
PAGE_SIZES = {"portrait": (8.5, 11), "landscape": (11, 8.5)}


def poincare_figure(values: Sequence[float]) -> plt.Figure:
    """Poincaré scatter with identity line and SD1/SD2 annotation."""
    fig, ax = plt.subplots(figsize=DEFAULT_FIGSIZE)

    x, y = poincare_points(values)
    ax.scatter(x, y, alpha=0.6, s=10, c="blue", label="RRn vs RRn+1")

    if x.size:
        low = float(min(x.min(), y.min()))
        high = float(max(x.max(), y.max()))
        ax.plot([low, high], [low, high], "k:", lw=1, label="Identity")

        metrics = poincare_analysis(values)
        if np.isfinite(metrics["sd1"]):
            ax.text(
                0.02,
                0.95,
                f"SD1={metrics['sd1']:.1f} ms, SD2={metrics['sd2']:.1f} ms",
                transform=ax.transAxes,
                fontsize=9,
                verticalalignment="top",
                bbox=dict(boxstyle="round", facecolor="white", alpha=0.6),
            )

    ax.set_xlabel("RRn (ms)")
    ax.set_ylabel("RRn+1 (ms)")
    ax.set_title("Poincaré Plot (RRn vs RRn+1)")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="lower right")
    return fig


def histogram_figure(
    values: Sequence[float],
    xlabel: str,
    title: str,
    rule: str = "sqrt",
    color: str = "steelblue",
) -> plt.Figure:
    fig, ax = plt.subplots(figsize=DEFAULT_FIGSIZE)

    result = histogram(values, rule=rule)
    if result.n_bins:
        widths = np.diff(result.edges)
        # Single-bin case: all values identical, draw a unit-width bar
        widths = np.where(widths > 0, widths, 1.0)
        ax.bar(
            result.edges[:-1],
            result.counts,
            width=widths,
            align="edge",
            color=color,
            edgecolor="black",
            alpha=0.7,
        )

    ax.set_xlabel(xlabel)
    ax.set_ylabel("Frequency")
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    return fig


def time_series_figure(
    values: Sequence[float],
    timestamps: Sequence[Optional[datetime]],
    ylabel: str,
    title: str,
    color: str = "b",
) -> plt.Figure:
    """Line plot over timestamps, or over beat number when any is missing."""
    fig, ax = plt.subplots(figsize=DEFAULT_FIGSIZE)

    data = np.asarray(values, dtype=float)
    if timestamps and all(ts is not None for ts in timestamps):
        x = list(timestamps)
        ax.set_xlabel("Time (UTC)")
        fig.autofmt_xdate()
    else:
        x = np.arange(1, data.size + 1)
        ax.set_xlabel("Beat number")

    ax.plot(x, data, f"{color}-", lw=1.2)
    ax.set_ylabel(ylabel)
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    return fig


def table_figure(
    table: pd.DataFrame,
    title: str,
    figsize: Tuple[float, float] = DEFAULT_FIGSIZE,
    max_rows: int = 40,
) -> plt.Figure:
    """Draw a DataFrame with ax.table; longer tables are truncated with a note."""
    fig, ax = plt.subplots(figsize=figsize)
    ax.axis("off")
    ax.set_title(title, fontweight="bold", pad=20)

    if table.empty:
        ax.text(0.5, 0.5, "No data to display in this table.", ha="center", va="center",
                transform=ax.transAxes, fontsize=11)
        return fig

    shown = table.head(max_rows)
    mpl_table = ax.table(
        cellText=shown.astype(str).values.tolist(),
        colLabels=[str(c) for c in shown.columns],
        cellLoc="left",
        loc="upper center",
    )
    mpl_table.auto_set_font_size(False)
    mpl_table.set_fontsize(8)
    mpl_table.scale(1, 1.2)

    if len(table) > max_rows:
        ax.text(0.5, 0.0, f"Showing {max_rows} of {len(table)} rows", ha="center",
                va="bottom", transform=ax.transAxes, fontsize=8, style="italic")
    return fig


def text_figure(
    text: str, title: str, figsize: Tuple[float, float] = DEFAULT_FIGSIZE, color: str = "black"
) -> plt.Figure:
    fig, ax = plt.subplots(figsize=figsize)
    ax.axis("off")
    ax.set_title(title, fontweight="bold", pad=20)
    ax.text(
        0.02,
        0.98,
        text,
        ha="left",
        va="top",
        wrap=True,
        transform=ax.transAxes,
        fontsize=10,
        color=color,
    )
    return fig
