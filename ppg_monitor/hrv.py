"""
Heart-rate variability from beat intervals.

The pipeline reports RMSSD (root mean square of successive differences),
the usual short-term HRV metric.  :func:`compute_hrv_metrics` adds SDNN,
pNN50 and the mean interval for callers that want more than one number.

With only a short window of beats these values have high variance; they
are suitable for trends, not for clinical assessment.
"""

from __future__ import annotations

import logging
from typing import Dict, Sequence, Union

import numpy as np

from ppg_monitor.constants import MIN_HRV_INTERVALS
from ppg_monitor.peaks import BeatInterval

logger = logging.getLogger(__name__)

IntervalLike = Union[BeatInterval, int, float]


def _durations(intervals: Sequence[IntervalLike]) -> np.ndarray:
    return np.array(
        [i.duration_ms if isinstance(i, BeatInterval) else i for i in intervals],
        dtype=np.float64,
    )


def compute_rmssd(intervals: Sequence[IntervalLike]) -> float:
    """
    RMSSD in ms over *intervals* (``BeatInterval`` objects or plain ms
    durations).  Returns 0.0 with fewer than ``MIN_HRV_INTERVALS``.
    """
    if len(intervals) < MIN_HRV_INTERVALS:
        return 0.0
    try:
        differences = np.diff(_durations(intervals))
        return float(np.sqrt(np.mean(differences ** 2)))
    except Exception as e:
        logger.error("Error calculating HRV: %s", e)
        return 0.0


def compute_hrv_metrics(intervals: Sequence[IntervalLike]) -> Dict[str, object]:
    """
    Compute time-domain HRV features.

    Returns
    -------
    dict with keys:
        rmssd_ms      : float   RMSSD in milliseconds.
        sdnn_ms       : float   Standard deviation of the intervals.
        pnn50         : float   Percentage of successive differences > 50 ms.
        mean_rr_ms    : float   Mean interval.
        num_intervals : int     Number of intervals used.
        valid         : bool    True if enough intervals were available.

    All metrics are 0.0 when ``valid`` is False.
    """
    count = len(intervals)
    if count < MIN_HRV_INTERVALS:
        return {
            "rmssd_ms": 0.0,
            "sdnn_ms": 0.0,
            "pnn50": 0.0,
            "mean_rr_ms": 0.0,
            "num_intervals": count,
            "valid": False,
        }

    durations = _durations(intervals)
    differences = np.abs(np.diff(durations))
    return {
        "rmssd_ms": compute_rmssd(intervals),
        "sdnn_ms": float(np.std(durations, ddof=1)),
        "pnn50": float(np.count_nonzero(differences > 50.0) / len(differences) * 100.0),
        "mean_rr_ms": float(np.mean(durations)),
        "num_intervals": count,
        "valid": True,
    }
