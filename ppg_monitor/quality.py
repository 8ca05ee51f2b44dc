"""
Signal quality and motion-artifact detection.

Quality is an SNR-like ratio over the most recent ``QUALITY_WINDOW``
filtered samples: standard deviation (signal strength) divided by the mean
absolute first difference (noise), capped at 1.0.  A window in which more
than ``MOTION_FRACTION`` of the steps exceed ``MOTION_STD_FACTOR`` standard
deviations is treated as motion-corrupted and its quality halved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ppg_monitor.constants import (
    MIN_QUALITY_SAMPLES,
    MOTION_FRACTION,
    MOTION_STD_FACTOR,
    QUALITY_WINDOW,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QualityMetrics:
    quality: float = 0.0
    strength: float = 0.0
    noise: float = 0.0
    motion: bool = False


def detect_motion_artifacts(window: np.ndarray) -> bool:
    """Return *True* if too many sample-to-sample jumps are implausibly large."""
    window = np.asarray(window, dtype=np.float64)
    if len(window) < MIN_QUALITY_SAMPLES:
        return False
    std_dev = float(np.std(window))
    large_changes = int(np.count_nonzero(np.abs(np.diff(window)) > std_dev * MOTION_STD_FACTOR))
    return large_changes / len(window) > MOTION_FRACTION


def analyse_quality(filtered: np.ndarray) -> Optional[QualityMetrics]:
    """
    Compute quality metrics for the tail of *filtered*.

    Returns ``None`` when fewer than ``MIN_QUALITY_SAMPLES`` samples are
    available; callers keep their previous metrics in that case.
    """
    filtered = np.asarray(filtered, dtype=np.float64)
    if len(filtered) < MIN_QUALITY_SAMPLES:
        return None

    try:
        window = filtered[-QUALITY_WINDOW:]
        strength = float(np.std(window))
        noise = float(np.mean(np.abs(np.diff(window))))
        quality = min(1.0, strength / noise) if noise > 0.0 else 0.0

        motion = detect_motion_artifacts(window)
        if motion:
            quality *= 0.5

        logger.debug(
            "Signal quality: %.3f, strength: %.3f, noise: %.3f, motion: %s",
            quality, strength, noise, motion,
        )
        return QualityMetrics(quality=quality, strength=strength, noise=noise, motion=motion)
    except Exception as e:
        logger.error("Error calculating signal quality: %s", e)
        return QualityMetrics()
