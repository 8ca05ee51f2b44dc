"""
Frequency-domain heart-rate estimation.

The last ``FFT_SIZE`` filtered samples (zero-padded on the right when
short) are Hamming-windowed and transformed.  Within the bins covering
``LOW_CUTOFF`` – ``HIGH_CUTOFF`` (and below Nyquist) the strongest local
maximum that rises ``FREQ_PEAK_THRESHOLD`` times above the mean in-band
magnitude is taken as the pulse frequency.
"""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

from ppg_monitor.constants import (
    FFT_SIZE,
    FREQ_PEAK_THRESHOLD,
    HIGH_CUTOFF,
    LOW_CUTOFF,
    MAX_HEART_RATE,
    MIN_HEART_RATE,
    SAMPLE_RATE,
)

logger = logging.getLogger(__name__)


def hamming_window(signal: np.ndarray) -> np.ndarray:
    """Multiply *signal* by ``0.54 − 0.46·cos(2πi / (N − 1))``."""
    signal = np.asarray(signal, dtype=np.float64)
    return signal * np.hamming(len(signal))


def _prepare_frame(filtered: np.ndarray) -> np.ndarray:
    frame = np.zeros(FFT_SIZE, dtype=np.float64)
    tail = np.asarray(filtered, dtype=np.float64)[-FFT_SIZE:]
    frame[:len(tail)] = tail
    return hamming_window(frame)


def band_bins() -> np.ndarray:
    """FFT bin indices inside the heart-rate band, first half only."""
    low_bin = int(LOW_CUTOFF * FFT_SIZE / SAMPLE_RATE)
    high_bin = int(HIGH_CUTOFF * FFT_SIZE / SAMPLE_RATE)
    return np.arange(low_bin, min(high_bin + 1, FFT_SIZE // 2))


def dominant_frequency(spectrum: np.ndarray) -> float:
    """
    Return the frequency (Hz) of the strongest qualifying in-band peak of
    a complex FFT *spectrum*, or 0.0 if none qualifies.
    """
    bins = band_bins()
    if len(bins) < 3:
        return 0.0

    magnitudes = np.abs(spectrum[bins])
    min_threshold = float(np.mean(magnitudes)) * FREQ_PEAK_THRESHOLD

    inner = magnitudes[1:-1]
    is_peak = (inner > magnitudes[:-2]) & (inner > magnitudes[2:]) & (inner > min_threshold)
    if not is_peak.any():
        return 0.0

    candidates = np.flatnonzero(is_peak) + 1
    best = candidates[np.argmax(magnitudes[candidates])]
    return float(bins[best]) * SAMPLE_RATE / FFT_SIZE


def estimate_frequency_domain(filtered: np.ndarray) -> int:
    """Return the spectral BPM estimate, or 0 when none is available."""
    filtered = np.asarray(filtered, dtype=np.float64)
    if len(filtered) < FFT_SIZE // 2:
        return 0

    try:
        spectrum = np.fft.fft(_prepare_frame(filtered))
        bpm = dominant_frequency(spectrum) * 60.0
        if MIN_HEART_RATE <= bpm <= MAX_HEART_RATE:
            return int(bpm)
        return 0
    except Exception as e:
        logger.error("Error in FFT analysis: %s", e)
        return 0


def get_spectrum(filtered: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Return ``(bpm_axis, magnitude)`` over the heart-rate band (for plotting).
    Returns empty arrays if there is insufficient data.
    """
    filtered = np.asarray(filtered, dtype=np.float64)
    if len(filtered) < FFT_SIZE // 2:
        return np.array([]), np.array([])

    spectrum = np.fft.fft(_prepare_frame(filtered))
    bins = band_bins()
    return bins * SAMPLE_RATE / FFT_SIZE * 60.0, np.abs(spectrum[bins])
