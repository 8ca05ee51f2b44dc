"""
Unit tests for quality scoring, the two BPM estimators, fusion and HRV.
Run with:  pytest tests/
"""

from __future__ import annotations

import numpy as np
import pytest

from ppg_monitor.fusion import fuse_estimates, is_stable, sanity_check
from ppg_monitor.hrv import compute_hrv_metrics, compute_rmssd
from ppg_monitor.peaks import (
    BeatInterval,
    estimate_time_domain,
    find_peaks_with_prominence,
    intervals_from_peaks,
    peak_prominence,
)
from ppg_monitor.quality import analyse_quality, detect_motion_artifacts
from ppg_monitor.spectrum import (
    dominant_frequency,
    estimate_frequency_domain,
    hamming_window,
)


def _pulse(n, period, amplitude=50.0, phase=0.3):
    return amplitude * np.sin(2 * np.pi * np.arange(n) / period + phase)


# ---------------------------------------------------------------------------
# Quality tests
# ---------------------------------------------------------------------------

class TestQuality:

    def test_too_few_samples_skipped(self):
        assert analyse_quality(np.ones(19)) is None

    def test_flat_signal_has_zero_quality(self):
        metrics = analyse_quality(np.zeros(40))
        assert metrics.quality == 0.0
        assert metrics.noise == 0.0

    def test_clean_pulse_has_full_quality(self):
        metrics = analyse_quality(_pulse(100, period=10))
        assert metrics.quality == pytest.approx(1.0)
        assert metrics.motion is False
        assert metrics.strength == pytest.approx(np.std(_pulse(100, period=10)[-75:]))

    def test_spikes_flag_motion_and_halve_quality(self):
        window = np.zeros(75)
        window[[10, 30, 50, 70]] = 10.0
        assert detect_motion_artifacts(window) is True
        metrics = analyse_quality(window)
        assert metrics.motion is True
        assert metrics.quality == pytest.approx(0.5)

    def test_quality_is_bounded(self):
        rng = np.random.default_rng(3)
        metrics = analyse_quality(rng.normal(0, 1, 200))
        assert 0.0 <= metrics.quality <= 1.0


# ---------------------------------------------------------------------------
# Time-domain tests
# ---------------------------------------------------------------------------

class TestTimeDomain:

    def test_finds_separated_peaks(self):
        signal = np.array([0, 5, 0, 0, 5, 0, 0, 5, 0], dtype=float)
        assert find_peaks_with_prominence(signal, min_height=1.0) == [1, 4, 7]

    def test_min_distance_enforced(self):
        signal = np.array([0, 5, 0, 5, 0], dtype=float)
        assert find_peaks_with_prominence(signal, min_height=1.0, min_distance=3) == [1]

    def test_shallow_bumps_rejected(self):
        signal = np.array([0, 10, 0, 0.2, 0.1, 0.3, 0, 10, 0])
        assert find_peaks_with_prominence(signal, min_height=0.0) == [1, 7]

    def test_prominence_uses_higher_valley(self):
        signal = np.array([1.0, 2.0, 6.0, 4.0, 3.0])
        assert peak_prominence(signal, 2) == pytest.approx(3.0)
        assert peak_prominence(signal, 0) == 0.0

    def test_invalid_intervals_dropped(self):
        intervals = intervals_from_peaks([1300, 0, 1000, 2300, 5000])
        assert intervals == [BeatInterval(1000, 1000), BeatInterval(1000, 2300)]

    def test_insufficient_samples(self):
        estimate = estimate_time_domain(np.ones(14), np.arange(14) * 100)
        assert estimate.bpm == 0
        assert estimate.intervals == []

    def test_periodic_signal_gives_bpm(self):
        signal = _pulse(100, period=10)
        timestamps = np.arange(100) * 100
        estimate = estimate_time_domain(signal, timestamps)
        assert estimate.bpm == 60
        assert all(i.duration_ms == 1000 for i in estimate.intervals)
        assert estimate.beat_bpms == [60] * len(estimate.intervals)
        assert len(estimate.peak_times) == len(estimate.intervals) + 1

    def test_no_peaks_gives_no_estimate(self):
        estimate = estimate_time_domain(np.linspace(0, 1, 40), np.arange(40) * 100)
        assert estimate.bpm == 0


# ---------------------------------------------------------------------------
# Frequency-domain tests
# ---------------------------------------------------------------------------

class TestFrequencyDomain:

    def test_hamming_window_shape(self):
        w = hamming_window(np.ones(8))
        assert w[0] == pytest.approx(0.08)
        assert w[-1] == pytest.approx(0.08)
        assert w.max() <= 1.0

    def test_requires_half_frame(self):
        assert estimate_frequency_domain(np.ones(255)) == 0

    def test_detects_72_bpm(self):
        # 1.2 Hz at the nominal 3 Hz sample rate
        signal = _pulse(512, period=3.0 / 1.2)
        assert abs(estimate_frequency_domain(signal) - 72) <= 1

    def test_zero_padded_frame(self):
        signal = _pulse(300, period=3.0 / 1.2)
        assert abs(estimate_frequency_domain(signal) - 72) <= 2

    def test_flat_spectrum_has_no_peak(self):
        assert dominant_frequency(np.zeros(512, dtype=complex)) == 0.0
        assert estimate_frequency_domain(np.zeros(512)) == 0


# ---------------------------------------------------------------------------
# Fusion and HRV tests
# ---------------------------------------------------------------------------

class TestFusion:

    def test_weighted_by_quality(self):
        assert fuse_estimates(60, 80, 0.75) == 65

    def test_single_estimate_used_directly(self):
        assert fuse_estimates(60, 0, 0.2) == 60
        assert fuse_estimates(0, 72, 0.9) == 72
        assert fuse_estimates(0, 0, 1.0) == 0

    @pytest.mark.parametrize("bpm, expected", [
        (29.9, 0), (30, 30), (150, 150), (151, 0), (0, 0), (72.8, 72),
    ])
    def test_sanity_check(self, bpm, expected):
        assert sanity_check(bpm) == expected

    def test_stability(self):
        assert is_stable([60] * 5, 0.8) is True
        assert is_stable([60] * 4, 0.8) is False
        assert is_stable([60] * 5, 0.7) is False


class TestHRV:

    def test_needs_five_intervals(self):
        assert compute_rmssd([800, 900, 1000, 800]) == 0.0

    def test_rmssd_value(self):
        assert compute_rmssd([800, 810, 790, 800, 820]) == pytest.approx(np.sqrt(250.0))

    def test_accepts_beat_intervals(self):
        beats = [BeatInterval(d, 1000 * i) for i, d in enumerate([800, 810, 790, 800, 820])]
        assert compute_rmssd(beats) == pytest.approx(np.sqrt(250.0))

    def test_constant_intervals_have_zero_rmssd(self):
        assert compute_rmssd([1000] * 6) == 0.0

    def test_metrics(self):
        metrics = compute_hrv_metrics([800, 900, 790, 800, 820])
        assert metrics["valid"] is True
        assert metrics["num_intervals"] == 5
        assert metrics["mean_rr_ms"] == pytest.approx(822.0)
        assert metrics["pnn50"] == pytest.approx(50.0)
        assert metrics["rmssd_ms"] > 0.0

    def test_metrics_invalid_when_short(self):
        metrics = compute_hrv_metrics([800, 900])
        assert metrics["valid"] is False
        assert metrics["rmssd_ms"] == 0.0
