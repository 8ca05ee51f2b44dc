"""Shared pytest fixtures."""

from __future__ import annotations

import numpy as np
import pytest

from helpers import sine_stream


@pytest.fixture
def pulse_60bpm():
    """20 s of a 1.0 Hz red-channel pulse sampled at 10 Hz."""
    red, ts = sine_stream(200, hz=1.0)
    return red, np.full_like(red, 100.0), np.full_like(red, 50.0), ts
