"""
Bounded sample storage.

Red, green and timestamp values are kept in three index-aligned deques
sharing the same ``maxlen``; appending to a full buffer evicts the oldest
entry from all three at once.  Blue is accepted but not stored: nothing
downstream reads it.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque

import numpy as np

from ppg_monitor.constants import BUFFER_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Sample:
    """One colour-intensity reading produced by the image sampler."""

    red: float
    green: float
    blue: float
    timestamp: int      # ms, monotonic non-decreasing


class SampleBuffer:
    """
    FIFO buffer of raw PPG samples.

    Parameters
    ----------
    maxlen:
        Maximum number of samples retained (default ``2 × FFT_SIZE``).
    """

    def __init__(self, maxlen: int = BUFFER_SIZE) -> None:
        self.maxlen = maxlen
        self._red: Deque[float] = deque(maxlen=maxlen)
        self._green: Deque[float] = deque(maxlen=maxlen)
        self._timestamps: Deque[int] = deque(maxlen=maxlen)

    def push(self, sample: Sample) -> None:
        self._red.append(float(sample.red))
        self._green.append(float(sample.green))
        self._timestamps.append(int(sample.timestamp))
        logger.debug(
            "Added sample: R=%.2f G=%.2f B=%.2f t=%d (total %d)",
            sample.red, sample.green, sample.blue, sample.timestamp, len(self),
        )

    def clear(self) -> None:
        self._red.clear()
        self._green.clear()
        self._timestamps.clear()

    def __len__(self) -> int:
        return len(self._red)

    @property
    def red(self) -> np.ndarray:
        return np.array(self._red, dtype=np.float64)

    @property
    def green(self) -> np.ndarray:
        return np.array(self._green, dtype=np.float64)

    @property
    def timestamps(self) -> np.ndarray:
        return np.array(self._timestamps, dtype=np.int64)

    @property
    def fill_ratio(self) -> float:
        """How full the buffer is (0 – 1)."""
        return len(self) / self.maxlen
