"""
Timed measurement session around a :class:`PPGProcessor`.

Mirrors how a host app drives a reading: clear the processor, feed samples
for a fixed duration, show progress and a status hint, then report the
mean of the recent per-beat and fused heart rates as the final value.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ppg_monitor.buffer import Sample
from ppg_monitor.processor import PPGProcessor, PPGResult

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MS = 30_000
IMPROVING_QUALITY = 0.3


class SessionStatus(enum.Enum):
    MEASURING = "Measuring… keep your finger still"
    IMPROVING = "Signal improving… stay still"
    FOUND = "Found heartbeat! Keep still"


@dataclass(frozen=True)
class SessionSummary:
    heart_rate: int
    hrv: float
    quality: float
    samples: int
    completed: bool


class MeasurementSession:
    """
    Parameters
    ----------
    processor:
        Processor to drive; a fresh one is created when omitted.
    duration_ms:
        Length of the measurement in milliseconds (default 30 s).
    """

    def __init__(
        self,
        processor: Optional[PPGProcessor] = None,
        duration_ms: int = DEFAULT_DURATION_MS,
    ) -> None:
        if duration_ms <= 0:
            raise ValueError("duration_ms must be positive")
        self.processor = processor if processor is not None else PPGProcessor()
        self.duration_ms = duration_ms
        self._start_ms: Optional[int] = None
        self._last_ms: Optional[int] = None
        self._last_hrv = 0.0
        self._last_result: Optional[PPGResult] = None

    @property
    def started(self) -> bool:
        return self._start_ms is not None

    @property
    def last_result(self) -> Optional[PPGResult]:
        return self._last_result

    def start(self, now_ms: int) -> None:
        self.processor.clear()
        self._start_ms = now_ms
        self._last_ms = now_ms
        self._last_hrv = 0.0
        self._last_result = None
        logger.info("Measurement started (%d ms)", self.duration_ms)

    def add_sample(self, red: float, green: float, blue: float, timestamp_ms: int) -> PPGResult:
        return self.push(Sample(red=red, green=green, blue=blue, timestamp=timestamp_ms))

    def push(self, sample: Sample) -> PPGResult:
        if self._start_ms is None:
            raise RuntimeError("Measurement session has not been started")
        result = self.processor.push(sample)
        if result.hrv > 0:
            self._last_hrv = result.hrv
        self._last_ms = sample.timestamp
        self._last_result = result
        return result

    def elapsed_ms(self, now_ms: Optional[int] = None) -> int:
        if self._start_ms is None:
            return 0
        if now_ms is None:
            now_ms = self._last_ms
        return max(0, now_ms - self._start_ms)

    def progress(self, now_ms: Optional[int] = None) -> int:
        """Percentage of the session elapsed, clamped to 0 – 100."""
        return min(100, int(self.elapsed_ms(now_ms) / self.duration_ms * 100))

    def is_finished(self, now_ms: Optional[int] = None) -> bool:
        return self.started and self.elapsed_ms(now_ms) >= self.duration_ms

    def current_bpm(self) -> int:
        """Mean of the recent per-beat and fused readings, 0 if there are none."""
        stats = self.processor.get_signal_stats()
        history = stats.heart_rate_history + stats.reading_history
        return int(np.mean(history)) if history else 0

    def status(self) -> SessionStatus:
        if self.current_bpm() > 0:
            return SessionStatus.FOUND
        if self.processor.get_signal_stats().quality > IMPROVING_QUALITY:
            return SessionStatus.IMPROVING
        return SessionStatus.MEASURING

    def finish(self) -> SessionSummary:
        stats = self.processor.get_signal_stats()
        heart_rate = self.current_bpm() if stats.samples > 0 else 0
        summary = SessionSummary(
            heart_rate=heart_rate,
            hrv=self._last_hrv,
            quality=stats.quality,
            samples=stats.samples,
            completed=self.is_finished(),
        )
        logger.info(
            "Measurement complete: %d BPM, HRV %.1f ms, quality %.2f",
            summary.heart_rate, summary.hrv, summary.quality,
        )
        return summary
