"""
Sample sources for replaying recordings through the processor.

These stand in for the host app's image sampler: a CSV of pre-averaged
colour values, or a recorded finger-on-lens video whose frames are reduced
to mean red / green / blue over a central region.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterator, Tuple, Union

import cv2
import numpy as np

from ppg_monitor.buffer import Sample

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_INTERVAL_MS = 100     # ~10 Hz, the host's capture cadence
ROI_FRACTION = 0.5            # central region used for frame means


def read_csv_samples(path: PathLike, interval_ms: int = DEFAULT_INTERVAL_MS) -> Iterator[Sample]:
    """
    Yield samples from a CSV file with a ``red,green,blue`` header and an
    optional ``timestamp`` column (ms).  Without one, timestamps are
    synthesised ``interval_ms`` apart starting at 0.

    Raises
    ------
    ValueError
        If the header lacks a colour column or a row cannot be parsed.
    """
    with open(path, newline="") as fh:
        reader = csv.DictReader(fh)
        fields = {name.strip().lower() for name in reader.fieldnames or []}
        missing = {"red", "green", "blue"} - fields
        if missing:
            raise ValueError(f"{path}: missing column(s) {', '.join(sorted(missing))}")
        has_timestamp = "timestamp" in fields

        for index, row in enumerate(reader):
            row = {k.strip().lower(): v for k, v in row.items() if k is not None}
            try:
                timestamp = int(float(row["timestamp"])) if has_timestamp else index * interval_ms
                yield Sample(
                    red=float(row["red"]),
                    green=float(row["green"]),
                    blue=float(row["blue"]),
                    timestamp=timestamp,
                )
            except (TypeError, ValueError) as e:
                raise ValueError(f"{path}: bad row at line {reader.line_num}: {e}") from e


def frame_means(frame: np.ndarray, roi_fraction: float = ROI_FRACTION) -> Tuple[float, float, float]:
    """
    Return the ``(red, green, blue)`` means of the central region of *frame*.

    Parameters
    ----------
    frame:
        BGR image array (H × W × 3, uint8).
    roi_fraction:
        Side length of the central region relative to the frame.
    """
    h, w = frame.shape[:2]
    rh, rw = max(1, int(h * roi_fraction)), max(1, int(w * roi_fraction))
    y0, x0 = (h - rh) // 2, (w - rw) // 2
    roi = frame[y0:y0 + rh, x0:x0 + rw].astype(np.float64)
    blue, green, red = (float(roi[:, :, c].mean()) for c in range(3))
    return red, green, blue


def read_video_samples(path: PathLike) -> Iterator[Sample]:
    """
    Yield one sample per frame of a recorded video, timestamped from the
    stream position.

    Raises
    ------
    OSError
        If OpenCV cannot open *path*.
    """
    cap = cv2.VideoCapture(str(path))
    if not cap.isOpened():
        raise OSError(f"Cannot open video {path}")

    fps = cap.get(cv2.CAP_PROP_FPS) or 30.0
    logger.info("Reading %s at %.1f FPS", path, fps)
    index = 0
    try:
        while True:
            ok, frame = cap.read()
            if not ok:
                break
            red, green, blue = frame_means(frame)
            yield Sample(red=red, green=green, blue=blue, timestamp=int(index * 1000 / fps))
            index += 1
    finally:
        cap.release()
