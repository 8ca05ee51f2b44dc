"""Combining the two BPM estimates and deciding when a reading is stable."""

from __future__ import annotations

import logging
from typing import Sized

from ppg_monitor.constants import (
    MAX_HEART_RATE,
    MIN_HEART_RATE,
    STABLE_MIN_QUALITY,
    STABLE_MIN_READINGS,
)

logger = logging.getLogger(__name__)


def fuse_estimates(time_bpm: int, freq_bpm: int, quality: float) -> int:
    """
    Quality-weighted blend of the time- and frequency-domain estimates.

    The time-domain estimate gets weight *quality*, the spectral one
    ``1 − quality``.  When only one estimator produced a value it is used
    directly; 0 means neither did.
    """
    if time_bpm > 0 and freq_bpm > 0:
        return int(time_bpm * quality + freq_bpm * (1.0 - quality))
    if time_bpm > 0:
        return time_bpm
    if freq_bpm > 0:
        return freq_bpm
    return 0


def sanity_check(bpm: float) -> int:
    """Return *bpm* as an int if physiologically plausible, else 0."""
    if bpm < MIN_HEART_RATE or bpm > MAX_HEART_RATE:
        if bpm != 0:
            logger.warning("Sanity check failed: %.1f BPM is outside realistic range", bpm)
        return 0
    return int(bpm)


def is_stable(readings: Sized, quality: float) -> bool:
    return len(readings) >= STABLE_MIN_READINGS and quality > STABLE_MIN_QUALITY
