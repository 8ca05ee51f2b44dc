"""Synthetic finger-on-lens sample streams shared by the tests."""

from __future__ import annotations

import numpy as np


def sine_stream(n, hz, mean=120.0, amplitude=10.0, interval_ms=100, phase=0.3):
    """Return ``(values, timestamps_ms)`` for a sampled sinusoid."""
    timestamps = np.arange(n) * interval_ms
    t = timestamps / 1000.0
    values = mean + amplitude * np.sin(2 * np.pi * hz * t + phase)
    return values, timestamps


def jittered_pulse(periods, repeats, mean=120.0, amplitude=10.0, phase=-0.3):
    """
    Return a pulse train whose beat lengths cycle through *periods*
    (in samples), *repeats* times over.
    """
    beats = [
        mean + amplitude * np.sin(2 * np.pi * np.arange(p) / p + phase)
        for _ in range(repeats)
        for p in periods
    ]
    return np.concatenate(beats)


def feed(processor, red, green, blue, timestamps):
    """Push aligned channel arrays into *processor*; return every result."""
    return [
        processor.add_sample(float(r), float(g), float(b), int(ts))
        for r, g, b, ts in zip(red, green, blue, timestamps)
    ]
