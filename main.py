#!/usr/bin/env python3
"""
PPG Monitor – replay recorded samples through the heart-rate pipeline.

Usage
-----
    python main.py (--csv PATH | --video PATH) [OPTIONS]

Options
-------
    --csv PATH           CSV with red,green,blue[,timestamp] columns
    --video PATH         Finger-on-lens video; frames are averaged to RGB
    --interval-ms INT    Sample spacing for CSV rows without timestamps (default: 100)
    --duration FLOAT     Measurement length in seconds (default: 30)
    --log-every INT      Print a reading every N samples (default: 10)
    --log-level LEVEL    Logging verbosity (default: INFO)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ppg_monitor.processor import PPGProcessor
from ppg_monitor.session import MeasurementSession
from ppg_monitor.sources import DEFAULT_INTERVAL_MS, read_csv_samples, read_video_samples

logger = logging.getLogger("ppg_monitor")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Camera PPG heart-rate monitor (offline replay)",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--csv", type=Path, default=None,
                        help="CSV file of red,green,blue[,timestamp] samples")
    source.add_argument("--video", type=Path, default=None,
                        help="Recorded finger-on-lens video")
    parser.add_argument("--interval-ms", type=int, default=DEFAULT_INTERVAL_MS,
                        help="Sample spacing for CSV rows without a timestamp")
    parser.add_argument("--duration", type=float, default=30.0,
                        help="Measurement length in seconds")
    parser.add_argument("--log-every", type=int, default=10,
                        help="Print a reading every N samples")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging verbosity")
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Main loop
# ---------------------------------------------------------------------------

def run(args: argparse.Namespace) -> int:
    if args.duration <= 0 or args.interval_ms <= 0 or args.log_every <= 0:
        logger.error("--duration, --interval-ms and --log-every must be positive.")
        return 1

    if args.csv is not None:
        samples = read_csv_samples(args.csv, interval_ms=args.interval_ms)
    else:
        samples = read_video_samples(args.video)

    session = MeasurementSession(PPGProcessor(), duration_ms=int(args.duration * 1000))

    try:
        for index, sample in enumerate(samples):
            if not session.started:
                session.start(sample.timestamp)
            if session.is_finished(sample.timestamp):
                break

            result = session.push(sample)

            if index % args.log_every == 0:
                seconds = session.elapsed_ms() / 1000.0
                if result.heart_rate > 0:
                    print(f"[{seconds:6.1f}s] BPM={result.heart_rate}  HRV={result.hrv:.1f}ms  "
                          f"quality={result.quality:.2f}  stable={result.is_stable}")
                else:
                    print(f"[{seconds:6.1f}s] Waiting for signal…  {session.status().value} "
                          f"({session.progress()}%)")
    except (OSError, ValueError) as e:
        logger.error("Cannot read samples: %s", e)
        return 1

    if not session.started:
        logger.error("No samples found.")
        return 1

    summary = session.finish()
    print(f"Heart rate: {summary.heart_rate} BPM  HRV: {summary.hrv:.1f} ms  "
          f"quality: {summary.quality:.2f}  samples: {summary.samples}  "
          f"complete: {summary.completed}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s – %(message)s",
        datefmt="%H:%M:%S",
    )
    return run(args)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    sys.exit(main())
