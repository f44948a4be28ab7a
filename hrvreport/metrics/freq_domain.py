import numpy as np
from scipy import signal, interpolate, integrate
from typing import Dict, Sequence, Tuple
import warnings


FREQ_BANDS = {
    "vlf": (0.003, 0.04),
    "lf": (0.04, 0.15),
    "hf": (0.15, 0.4),
}


def _nan_results() -> Dict[str, float]:
    nan = float("nan")
    return {
        "vlf_power": nan,
        "lf_power": nan,
        "hf_power": nan,
        "total_power": nan,
        "lf_hf_ratio": nan,
    }


def resample_rr(
    rr_ms: Sequence[float], resampling_rate_hz: float = 4.0
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Evenly resample an RR tachogram with a natural cubic spline

    Returns:
        Tuple of (time_s, rr_s) on a 1/resampling_rate_hz grid
    """
    rr_s = np.asarray(rr_ms, dtype=float) / 1000.0
    time_points = np.concatenate([[0.0], np.cumsum(rr_s)[:-1]])
    duration = time_points[-1]

    interp_func = interpolate.CubicSpline(time_points, rr_s, bc_type="natural")
    new_time_axis = np.arange(0.0, duration + 1e-12, 1.0 / resampling_rate_hz)
    return new_time_axis, interp_func(new_time_axis)


def band_powers(
    rr_ms: Sequence[float],
    resampling_rate_hz: float = 4.0,
    min_duration_s: float = 60.0,
) -> Dict[str, float]:
    """
    VLF/LF/HF band powers (ms^2) from a Welch PSD of the resampled tachogram

    Args:
        rr_ms: Filtered RR intervals in milliseconds
        resampling_rate_hz: Interpolation rate
        min_duration_s: Recordings shorter than this yield NaN powers

    Returns:
        Dictionary with vlf_power, lf_power, hf_power, total_power, lf_hf_ratio
    """
    rr = np.asarray(rr_ms, dtype=float)
    duration_s = float(np.sum(rr)) / 1000.0

    if rr.size < 4 or duration_s < min_duration_s:
        warnings.warn(
            f"Recording duration {duration_s:.1f}s < {min_duration_s:.0f}s. "
            "Frequency domain metrics not computed."
        )
        return _nan_results()

    _, resampled = resample_rr(rr, resampling_rate_hz)

    nperseg = min(int(120 * resampling_rate_hz), len(resampled))
    freqs, psd_seconds = signal.welch(
        x=resampled,
        fs=resampling_rate_hz,
        window="hann",
        nperseg=nperseg,
        noverlap=nperseg // 2,
        detrend="linear",
        scaling="density",
    )
    psd = psd_seconds * 1e6

    results = {}
    for band, (low, high) in FREQ_BANDS.items():
        mask = (freqs >= low) & (freqs < high)
        if np.count_nonzero(mask) < 2:
            results[f"{band}_power"] = 0.0
            continue
        results[f"{band}_power"] = max(
            0.0, float(integrate.trapezoid(psd[mask], freqs[mask]))
        )

    results["total_power"] = (
        results["vlf_power"] + results["lf_power"] + results["hf_power"]
    )
    hf = results["hf_power"]
    results["lf_hf_ratio"] = results["lf_power"] / hf if hf > 1e-10 else float("nan")
    return results
