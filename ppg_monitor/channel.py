"""
Exposure-driven channel selection.

With the torch on and a finger over the lens the red channel usually
carries the strongest pulsatile component, but it clips easily.  A
saturated red channel falls back to green; an underexposed one is
averaged with green to lift the signal above sensor noise.
"""

from __future__ import annotations

import enum
import logging
from typing import Tuple

import numpy as np

from ppg_monitor.constants import LOW_SIGNAL_THRESHOLD, SATURATION_THRESHOLD

logger = logging.getLogger(__name__)


class Channel(enum.Enum):
    RED = "red"
    GREEN = "green"
    RED_GREEN_AVERAGE = "red+green"


def choose_channel(mean_red: float) -> Channel:
    """Return the channel to analyse for a given mean red intensity."""
    if mean_red > SATURATION_THRESHOLD:
        return Channel.GREEN
    if mean_red < LOW_SIGNAL_THRESHOLD:
        return Channel.RED_GREEN_AVERAGE
    return Channel.RED


def select_channel(red: np.ndarray, green: np.ndarray) -> Tuple[Channel, np.ndarray]:
    """
    Pick the raw signal to filter from the buffered red and green values.

    Returns ``(channel, raw_signal)``.  ``red`` and ``green`` must be the
    same length.
    """
    red = np.asarray(red, dtype=np.float64)
    green = np.asarray(green, dtype=np.float64)
    if len(red) == 0:
        return Channel.RED, red

    mean_red = float(np.mean(red))
    channel = choose_channel(mean_red)

    if channel is Channel.GREEN:
        logger.warning("Red channel saturated (mean=%.1f) – switching to green", mean_red)
        return channel, green
    if channel is Channel.RED_GREEN_AVERAGE:
        logger.warning("Red channel underexposed (mean=%.1f) – averaging R+G", mean_red)
        return channel, (red + green) / 2.0
    return channel, red
