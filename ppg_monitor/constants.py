"""
Tuning constants for the PPG pipeline.

The filter's notion of sample rate is fixed at 3 Hz (the ~300 ms cadence
the processor was tuned against); it is not derived from the real call
frequency.
"""

# Sampling / band
SAMPLE_RATE = 3.0           # Hz
MIN_HEART_RATE = 30.0       # BPM
MAX_HEART_RATE = 150.0      # BPM
MIN_SAMPLES = 30            # ~10 s at 3 Hz before any processing
FFT_SIZE = 512
BUFFER_SIZE = FFT_SIZE * 2

# Bandpass (0.67 – 2.0 Hz = 40 – 120 BPM)
LOW_CUTOFF = 0.67
HIGH_CUTOFF = 2.0
SIGNAL_AMPLIFICATION = 50.0
MIN_FILTER_SAMPLES = 10

# Channel selection
SATURATION_THRESHOLD = 220.0    # mean red above this -> use green
LOW_SIGNAL_THRESHOLD = 50.0     # mean red below this -> average red + green

# Quality
QUALITY_WINDOW = 75             # ~25 s at 3 Hz
MIN_QUALITY_SAMPLES = 20
MOTION_STD_FACTOR = 3.0
MOTION_FRACTION = 0.1
LOW_QUALITY_WARNING = 0.1

# Time-domain peak detection
MIN_TIME_DOMAIN_SAMPLES = 15
MIN_PEAK_HEIGHT_RATIO = 0.05
MIN_PEAK_DISTANCE = 2           # samples
PEAK_PROMINENCE_RATIO = 0.05
PROMINENCE_SEARCH = 20          # samples scanned each side for valleys

# Beat intervals (ms)
MIN_INTERVAL = int(60000 / MAX_HEART_RATE)     # 400 ms
MAX_INTERVAL = int(60000 / MIN_HEART_RATE)     # 2000 ms

# Frequency domain
FREQ_PEAK_THRESHOLD = 1.5       # x mean in-band magnitude

# Histories / stability
BEAT_HISTORY_SIZE = 20
READING_HISTORY_SIZE = 10
STABLE_MIN_READINGS = 5
STABLE_MIN_QUALITY = 0.7

# HRV
MIN_HRV_INTERVALS = 5
