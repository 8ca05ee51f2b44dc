"""
PPG Monitor — heart rate and HRV from camera colour-intensity samples.
Feed the mean red / green / blue intensity of each finger-on-lens frame
into :class:`PPGProcessor`; it returns the current BPM estimate, RMSSD
heart-rate variability and a 0 – 1 signal quality score.
"""

from ppg_monitor.processor import PPGProcessor, PPGResult, SignalStats

__version__ = "0.1.0"
__author__ = "ppg_monitor"

__all__ = ["PPGProcessor", "PPGResult", "SignalStats"]
