"""
PPG signal processor.

Algorithm
---------
Every call to :meth:`PPGProcessor.add_sample` appends one colour sample to
a bounded buffer and, once ``MIN_SAMPLES`` are available, recomputes the
whole pipeline from the buffer:

1. Pick the analysed channel from red-channel exposure (red, green, or the
   average of both).
2. Bandpass-condition it (detrend, one-pole low/high-pass, smoothing,
   fixed gain).
3. Score signal quality over the last ~25 s and flag motion artifacts.
4. Estimate BPM twice: from peak-to-peak intervals (time domain) and from
   the dominant FFT bin (frequency domain).
5. Blend the two estimates weighted by quality, reject implausible values.
6. Compute RMSSD from this pass's beat intervals.

A heart rate of 0 always means "no valid estimate yet".  The processor is
not thread-safe; callers feeding it from a capture thread must serialise
calls themselves.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, List, Optional, Tuple

import numpy as np

from ppg_monitor.buffer import Sample, SampleBuffer
from ppg_monitor.channel import Channel, select_channel
from ppg_monitor.constants import (
    BEAT_HISTORY_SIZE,
    LOW_QUALITY_WARNING,
    MIN_SAMPLES,
    READING_HISTORY_SIZE,
)
from ppg_monitor.filters import bandpass_filter
from ppg_monitor.fusion import fuse_estimates, is_stable, sanity_check
from ppg_monitor.hrv import compute_rmssd
from ppg_monitor.peaks import BeatInterval, estimate_time_domain
from ppg_monitor.quality import QualityMetrics, analyse_quality
from ppg_monitor.spectrum import estimate_frequency_domain, get_spectrum

logger = logging.getLogger(__name__)


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


@dataclass(frozen=True)
class PPGResult:
    """Reading returned from every :meth:`PPGProcessor.add_sample` call."""

    heart_rate: int
    hrv: float
    quality: float
    samples: int
    is_stable: bool


@dataclass(frozen=True)
class SignalStats:
    """Read-only snapshot of the processor's internal statistics."""

    samples: int
    quality: float
    strength: float
    noise: float
    heart_rate_history: List[int] = field(default_factory=list)
    reading_history: List[int] = field(default_factory=list)
    beat_intervals: List[int] = field(default_factory=list)
    peak_timestamps: List[int] = field(default_factory=list)


@dataclass
class PassEstimates:
    """Everything one processing pass derives before fusion."""

    time_domain_bpm: int = 0
    freq_domain_bpm: int = 0
    beat_intervals: List[BeatInterval] = field(default_factory=list)
    peak_timestamps: List[int] = field(default_factory=list)
    beat_bpms: List[int] = field(default_factory=list)


class PPGProcessor:
    """
    Rolling PPG analyser producing heart rate, HRV and signal quality.

    Parameters
    ----------
    clock:
        Zero-argument callable returning the current time in milliseconds.
        Used to timestamp samples added without an explicit timestamp.
        Defaults to a monotonic clock.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        self._clock = clock or _monotonic_ms
        self._buffer = SampleBuffer()
        self._filtered: np.ndarray = np.array([])
        self._channel: Optional[Channel] = None

        # Per-beat BPM from the time-domain estimator (display/telemetry)
        self._heart_rate_history: Deque[int] = deque(maxlen=BEAT_HISTORY_SIZE)
        # Fused readings, used for the stability flag
        self._reading_history: Deque[int] = deque(maxlen=READING_HISTORY_SIZE)
        self._last_intervals: List[BeatInterval] = []
        self._last_peaks: List[int] = []

        self._metrics = QualityMetrics()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add_sample(
        self,
        red: float,
        green: Optional[float] = None,
        blue: Optional[float] = None,
        timestamp_ms: Optional[int] = None,
    ) -> PPGResult:
        """
        Append one sample and return the updated reading.

        Called with a single value, all three channels take that value
        (legacy single-channel form).
        """
        if green is None and blue is None:
            green = blue = red
        elif green is None or blue is None:
            raise TypeError("add_sample() needs either one value or red, green and blue")
        if timestamp_ms is None:
            timestamp_ms = self._clock()

        self._buffer.push(Sample(red=red, green=green, blue=blue, timestamp=timestamp_ms))

        if len(self._buffer) < MIN_SAMPLES:
            return self._empty_result()
        return self._process()

    def push(self, sample: Sample) -> PPGResult:
        """Same as :meth:`add_sample` for an already-built :class:`Sample`."""
        return self.add_sample(sample.red, sample.green, sample.blue, sample.timestamp)

    def get_signal_stats(self) -> SignalStats:
        return SignalStats(
            samples=len(self._buffer),
            quality=self._metrics.quality,
            strength=self._metrics.strength,
            noise=self._metrics.noise,
            heart_rate_history=list(self._heart_rate_history),
            reading_history=list(self._reading_history),
            beat_intervals=[i.duration_ms for i in self._last_intervals],
            peak_timestamps=list(self._last_peaks),
        )

    def get_filtered_signal(self) -> np.ndarray:
        """Return a copy of the latest filtered waveform (for plotting)."""
        return self._filtered.copy()

    def get_spectrum(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(bpm_axis, magnitude)`` of the latest filtered waveform."""
        return get_spectrum(self._filtered)

    @property
    def selected_channel(self) -> Optional[Channel]:
        """Channel analysed in the most recent pass (None before the first)."""
        return self._channel

    @property
    def buffer_fill_ratio(self) -> float:
        return self._buffer.fill_ratio

    def clear(self) -> None:
        """Reset every buffer, history and statistic."""
        self._buffer.clear()
        self._filtered = np.array([])
        self._channel = None
        self._heart_rate_history.clear()
        self._reading_history.clear()
        self._last_intervals = []
        self._last_peaks = []
        self._metrics = QualityMetrics()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _empty_result(self) -> PPGResult:
        return PPGResult(
            heart_rate=0,
            hrv=0.0,
            quality=0.0,
            samples=len(self._buffer),
            is_stable=False,
        )

    def _estimate(self, filtered: np.ndarray, timestamps: np.ndarray) -> PassEstimates:
        time_domain = estimate_time_domain(filtered, timestamps)
        if time_domain.bpm == 0:
            logger.warning("No HR detected in time domain – no peaks found")

        freq_bpm = estimate_frequency_domain(filtered)
        if freq_bpm == 0:
            logger.warning("No HR detected in frequency domain – no dominant frequency")

        return PassEstimates(
            time_domain_bpm=time_domain.bpm,
            freq_domain_bpm=freq_bpm,
            beat_intervals=time_domain.intervals,
            peak_timestamps=time_domain.peak_times,
            beat_bpms=time_domain.beat_bpms,
        )

    def _process(self) -> PPGResult:
        try:
            self._channel, raw_signal = select_channel(self._buffer.red, self._buffer.green)
            logger.debug(
                "Raw signal variance: %.4f, mean: %.2f",
                float(np.var(raw_signal)), float(np.mean(raw_signal)),
            )

            self._filtered = bandpass_filter(raw_signal)

            metrics = analyse_quality(self._filtered)
            if metrics is not None:
                self._metrics = metrics
            quality = self._metrics.quality
            if quality < LOW_QUALITY_WARNING and len(self._buffer) > 60:
                logger.warning(
                    "Low signal quality – check finger placement and cover the camera/flash fully"
                )

            estimates = self._estimate(self._filtered, self._buffer.timestamps)
            self._heart_rate_history.extend(estimates.beat_bpms)
            self._last_intervals = estimates.beat_intervals
            self._last_peaks = estimates.peak_timestamps

            heart_rate = sanity_check(
                fuse_estimates(estimates.time_domain_bpm, estimates.freq_domain_bpm, quality)
            )
            if heart_rate > 0:
                self._reading_history.append(heart_rate)

            return PPGResult(
                heart_rate=heart_rate,
                hrv=compute_rmssd(estimates.beat_intervals),
                quality=quality,
                samples=len(self._buffer),
                is_stable=is_stable(self._reading_history, quality),
            )

        except Exception:
            logger.exception("Error processing PPG signal")
            return self._empty_result()
