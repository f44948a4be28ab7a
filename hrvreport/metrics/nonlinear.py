import numpy as np
from typing import Dict, Sequence, Tuple


def poincare_points(rr_ms: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Consecutive pairs (RR[i], RR[i+1]) for the Poincaré plot

    Returns:
        Tuple of (x, y) arrays, each of length n-1
    """
    rr = np.asarray(rr_ms, dtype=float)
    if rr.size < 2:
        return np.array([]), np.array([])
    return rr[:-1], rr[1:]


def poincare_analysis(rr_ms: Sequence[float]) -> Dict[str, float]:
    """
    SD1/SD2 descriptors of the Poincaré plot

    SD1 = sqrt(var(RR[i+1] - RR[i]) / 2)
    SD2 = sqrt(2 * SDNN^2 - 0.5 * SD1^2)

    Returns:
        Dictionary with sd1, sd2, sd1_sd2_ratio and ellipse_area.
        All values are NaN for fewer than 3 intervals.
    """
    rr = np.asarray(rr_ms, dtype=float)
    nan = float("nan")
    if rr.size < 3:
        return {"sd1": nan, "sd2": nan, "sd1_sd2_ratio": nan, "ellipse_area": nan}

    diff = np.diff(rr)
    sd1 = float(np.sqrt(np.var(diff, ddof=1) / 2))

    sdnn = np.std(rr, ddof=1)
    sd2_squared = 2 * sdnn**2 - 0.5 * sd1**2
    sd2 = float(np.sqrt(max(sd2_squared, 0)))

    return {
        "sd1": sd1,
        "sd2": sd2,
        "sd1_sd2_ratio": sd1 / sd2 if sd2 > 0 else nan,
        "ellipse_area": float(np.pi * sd1 * sd2),
    }
