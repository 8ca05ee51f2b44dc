"""
Bandpass conditioning of the raw PPG signal.

Stages
------
1. Detrend: subtract the mean (ambient light / DC offset).
2. Low-pass at ``HIGH_CUTOFF`` (2.0 Hz = 120 BPM).
3. High-pass at ``LOW_CUTOFF`` (0.67 Hz = 40 BPM).
4. 3-point moving average, end samples passed through.
5. Fixed gain of ``SIGNAL_AMPLIFICATION``.

The low- and high-pass stages are one-pole IIR sections, not a true
Butterworth design.  Both are seeded so the first output equals the first
input, and both use ``alpha = 1 / (1 + 2·pi·fc / fs)``.
"""

from __future__ import annotations

import logging

import numpy as np
from scipy.signal import lfilter

from ppg_monitor.constants import (
    HIGH_CUTOFF,
    LOW_CUTOFF,
    MIN_FILTER_SAMPLES,
    SAMPLE_RATE,
    SIGNAL_AMPLIFICATION,
)

logger = logging.getLogger(__name__)


def filter_alpha(cutoff_hz: float, sample_rate: float = SAMPLE_RATE) -> float:
    return 1.0 / (1.0 + 2.0 * np.pi * cutoff_hz / sample_rate)


def detrend(signal: np.ndarray) -> np.ndarray:
    signal = np.asarray(signal, dtype=np.float64)
    return signal - np.mean(signal)


def low_pass(signal: np.ndarray, cutoff_hz: float = HIGH_CUTOFF) -> np.ndarray:
    """``y[n] = a·x[n] + (1 − a)·y[n−1]`` with ``y[0] = x[0]``."""
    signal = np.asarray(signal, dtype=np.float64)
    if len(signal) < 3:
        return signal
    alpha = filter_alpha(cutoff_hz)
    zi = [(1.0 - alpha) * signal[0]]
    filtered, _ = lfilter([alpha], [1.0, -(1.0 - alpha)], signal, zi=zi)
    return filtered


def high_pass(signal: np.ndarray, cutoff_hz: float = LOW_CUTOFF) -> np.ndarray:
    """``y[n] = a·(y[n−1] + x[n] − x[n−1])`` with ``y[0] = x[0]``."""
    signal = np.asarray(signal, dtype=np.float64)
    if len(signal) < 3:
        return signal
    alpha = filter_alpha(cutoff_hz)
    zi = [(1.0 - alpha) * signal[0]]
    filtered, _ = lfilter([alpha, -alpha], [1.0, -alpha], signal, zi=zi)
    return filtered


def smooth(signal: np.ndarray) -> np.ndarray:
    """3-point moving average; the first and last samples are kept as-is."""
    signal = np.asarray(signal, dtype=np.float64)
    if len(signal) < 3:
        return signal
    smoothed = signal.copy()
    smoothed[1:-1] = np.convolve(signal, np.ones(3) / 3.0, mode="valid")
    return smoothed


def bandpass_filter(raw_signal: np.ndarray) -> np.ndarray:
    """
    Run the full conditioning chain on *raw_signal*.

    Signals shorter than ``MIN_FILTER_SAMPLES`` are returned unchanged, and
    so is the input if any stage fails.
    """
    raw_signal = np.asarray(raw_signal, dtype=np.float64)
    if len(raw_signal) < MIN_FILTER_SAMPLES:
        return raw_signal

    try:
        filtered = detrend(raw_signal)
        filtered = low_pass(filtered, HIGH_CUTOFF)
        filtered = high_pass(filtered, LOW_CUTOFF)
        filtered = smooth(filtered)
        return filtered * SIGNAL_AMPLIFICATION
    except Exception as e:
        logger.error("Error applying bandpass filter: %s", e)
        return raw_signal
