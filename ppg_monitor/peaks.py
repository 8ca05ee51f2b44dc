"""
Time-domain heart-rate estimation.

Peaks are local maxima of the filtered signal that clear a height floor
and a prominence floor, both expressed as fractions of the window's range.
Consecutive peak timestamps give beat intervals; intervals outside the
physiological 400 – 2000 ms range are dropped, the rest are converted to
instantaneous BPM and averaged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from ppg_monitor.constants import (
    MAX_INTERVAL,
    MIN_INTERVAL,
    MIN_PEAK_DISTANCE,
    MIN_PEAK_HEIGHT_RATIO,
    MIN_TIME_DOMAIN_SAMPLES,
    PEAK_PROMINENCE_RATIO,
    PROMINENCE_SEARCH,
    QUALITY_WINDOW,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BeatInterval:
    duration_ms: int
    timestamp: int      # time of the second peak of the pair


@dataclass
class TimeDomainEstimate:
    """Output of :func:`estimate_time_domain`.  ``bpm == 0`` means no estimate."""

    bpm: int = 0
    intervals: List[BeatInterval] = field(default_factory=list)
    peak_times: List[int] = field(default_factory=list)
    beat_bpms: List[int] = field(default_factory=list)


def peak_prominence(signal: np.ndarray, index: int, search: int = PROMINENCE_SEARCH) -> float:
    """
    Height of ``signal[index]`` above the higher of its two valleys.

    Each valley is the minimum within ``search`` samples on that side.
    End points have no prominence.
    """
    if index <= 0 or index >= len(signal) - 1:
        return 0.0
    peak = signal[index]
    left_valley = min(peak, float(np.min(signal[max(0, index - search):index])))
    right_valley = min(peak, float(np.min(signal[index + 1:index + 1 + search])))
    return float(peak - max(left_valley, right_valley))


def find_peaks_with_prominence(
    signal: np.ndarray,
    min_height: float,
    min_distance: int = MIN_PEAK_DISTANCE,
) -> List[int]:
    """
    Return indices of accepted peaks, in ascending order.

    A candidate strictly exceeds both neighbours and *min_height*; it is
    accepted when its prominence exceeds ``PEAK_PROMINENCE_RATIO`` of the
    signal range and it lies at least *min_distance* samples after the
    previously accepted peak.
    """
    signal = np.asarray(signal, dtype=np.float64)
    if len(signal) < 3:
        return []

    min_prominence = float(np.ptp(signal)) * PEAK_PROMINENCE_RATIO
    peaks: List[int] = []
    for i in range(1, len(signal) - 1):
        value = signal[i]
        if not (value > signal[i - 1] and value > signal[i + 1] and value > min_height):
            continue
        if peak_prominence(signal, i) <= min_prominence:
            continue
        if peaks and i - peaks[-1] < min_distance:
            continue
        peaks.append(i)
    return peaks


def intervals_from_peaks(peak_times: Sequence[int]) -> List[BeatInterval]:
    """Pair up consecutive peak times, keeping physiologically valid gaps."""
    ordered = sorted(int(t) for t in peak_times)
    intervals: List[BeatInterval] = []
    for previous, current in zip(ordered, ordered[1:]):
        duration = current - previous
        if 0 < duration and MIN_INTERVAL <= duration <= MAX_INTERVAL:
            intervals.append(BeatInterval(duration_ms=duration, timestamp=current))
        else:
            logger.debug("Rejecting invalid interval: %d ms", duration)
    return intervals


def estimate_time_domain(filtered: np.ndarray, timestamps: np.ndarray) -> TimeDomainEstimate:
    """
    Estimate BPM from peak-to-peak intervals over the last ``QUALITY_WINDOW``
    samples of *filtered*.

    *timestamps* must be index-aligned with *filtered* (same length, same
    ordering).
    """
    filtered = np.asarray(filtered, dtype=np.float64)
    if len(filtered) < MIN_TIME_DOMAIN_SAMPLES:
        return TimeDomainEstimate()

    try:
        window = filtered[-QUALITY_WINDOW:]
        window_times = np.asarray(timestamps)[-QUALITY_WINDOW:]

        min_height = float(np.mean(window)) + float(np.ptp(window)) * MIN_PEAK_HEIGHT_RATIO
        peaks = find_peaks_with_prominence(window, min_height, MIN_PEAK_DISTANCE)
        logger.debug("Detected %d peaks in time domain", len(peaks))

        peak_times = sorted(int(window_times[i]) for i in peaks)
        intervals = intervals_from_peaks(peak_times)
        if not intervals:
            return TimeDomainEstimate(peak_times=peak_times)

        beat_bpms = [60000 // interval.duration_ms for interval in intervals]
        bpm = int(np.mean(beat_bpms))
        return TimeDomainEstimate(
            bpm=bpm,
            intervals=intervals,
            peak_times=peak_times,
            beat_bpms=beat_bpms,
        )
    except Exception as e:
        logger.error("Error in time-domain heart rate detection: %s", e)
        return TimeDomainEstimate()
