"""
Unit tests for MeasurementSession, sample sources and the CLI.
Run with:  pytest tests/
"""

from __future__ import annotations

import numpy as np
import pytest

import main
from helpers import sine_stream
from ppg_monitor.buffer import Sample
from ppg_monitor.session import MeasurementSession, SessionStatus
from ppg_monitor.sources import frame_means, read_csv_samples, read_video_samples


def _write_csv(path, n=200, with_timestamp=True):
    red, ts = sine_stream(n, hz=1.0)
    lines = ["timestamp,red,green,blue" if with_timestamp else "red,green,blue"]
    for r, t in zip(red, ts):
        row = f"{r:.4f},100,50"
        lines.append(f"{t},{row}" if with_timestamp else row)
    path.write_text("\n".join(lines) + "\n")
    return path


# ---------------------------------------------------------------------------
# MeasurementSession tests
# ---------------------------------------------------------------------------

class TestMeasurementSession:

    def test_requires_start(self):
        session = MeasurementSession()
        with pytest.raises(RuntimeError):
            session.add_sample(1.0, 1.0, 1.0, 0)

    def test_rejects_bad_duration(self):
        with pytest.raises(ValueError):
            MeasurementSession(duration_ms=0)

    def test_progress_and_finish_flags(self):
        session = MeasurementSession(duration_ms=10_000)
        assert session.progress(5_000) == 0
        assert session.is_finished(20_000) is False
        session.start(1_000)
        assert session.progress(6_000) == 50
        assert session.progress(50_000) == 100
        assert session.is_finished(10_999) is False
        assert session.is_finished(11_000) is True

    def test_status_progression(self, pulse_60bpm):
        session = MeasurementSession()
        session.start(0)
        assert session.status() is SessionStatus.MEASURING
        for r, g, b, t in zip(*pulse_60bpm):
            session.add_sample(r, g, b, int(t))
        assert session.status() is SessionStatus.FOUND
        assert 55 <= session.current_bpm() <= 65

    def test_start_clears_processor(self, pulse_60bpm):
        session = MeasurementSession()
        session.start(0)
        for r, g, b, t in zip(*pulse_60bpm):
            session.add_sample(r, g, b, int(t))
        session.start(50_000)
        assert session.processor.get_signal_stats().samples == 0
        assert session.current_bpm() == 0
        assert session.last_result is None

    def test_finish_summary(self, pulse_60bpm):
        session = MeasurementSession(duration_ms=15_000)
        session.start(0)
        for r, g, b, t in zip(*pulse_60bpm):
            session.add_sample(r, g, b, int(t))
        summary = session.finish()
        assert 55 <= summary.heart_rate <= 65
        assert summary.samples == 200
        assert summary.completed is True
        assert summary.hrv >= 0.0

    def test_frequency_only_reading_reported(self):
        """Equal timestamps leave no beat intervals; the spectral 72 BPM still counts."""
        red, _ = sine_stream(300, hz=1.2, interval_ms=1000 / 3)
        session = MeasurementSession()
        session.start(0)
        for value in red:
            session.add_sample(float(value), 100.0, 50.0, 0)
        stats = session.processor.get_signal_stats()
        assert stats.heart_rate_history == []
        assert stats.reading_history
        assert session.last_result.heart_rate > 0
        assert 70 <= session.current_bpm() <= 74
        assert session.status() is SessionStatus.FOUND
        assert session.finish().heart_rate == session.current_bpm()

    def test_push_sample(self):
        session = MeasurementSession()
        session.start(0)
        result = session.push(Sample(red=100.0, green=90.0, blue=40.0, timestamp=250))
        assert result.samples == 1
        assert session.elapsed_ms() == 250
        assert session.last_result == result

    def test_empty_session_summary(self):
        session = MeasurementSession()
        session.start(0)
        summary = session.finish()
        assert summary.heart_rate == 0
        assert summary.samples == 0
        assert summary.completed is False


# ---------------------------------------------------------------------------
# Source tests
# ---------------------------------------------------------------------------

class TestSources:

    def test_csv_with_timestamps(self, tmp_path):
        samples = list(read_csv_samples(_write_csv(tmp_path / "s.csv", n=5)))
        assert [s.timestamp for s in samples] == [0, 100, 200, 300, 400]
        assert samples[0].green == 100.0

    def test_csv_without_timestamps(self, tmp_path):
        path = _write_csv(tmp_path / "s.csv", n=3, with_timestamp=False)
        samples = list(read_csv_samples(path, interval_ms=250))
        assert [s.timestamp for s in samples] == [0, 250, 500]

    def test_csv_missing_column(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("red,green\n1,2\n")
        with pytest.raises(ValueError):
            list(read_csv_samples(path))

    def test_csv_bad_row(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("red,green,blue\n1,2,3\n1,x,3\n")
        with pytest.raises(ValueError):
            list(read_csv_samples(path))

    def test_frame_means_uses_centre(self):
        frame = np.zeros((40, 40, 3), dtype=np.uint8)
        frame[10:30, 10:30] = (30, 60, 200)   # BGR
        assert frame_means(frame) == (200.0, 60.0, 30.0)

    def test_unreadable_video(self, tmp_path):
        with pytest.raises(OSError):
            list(read_video_samples(tmp_path / "missing.mp4"))


# ---------------------------------------------------------------------------
# CLI tests
# ---------------------------------------------------------------------------

class TestCLI:

    def test_csv_replay(self, tmp_path, capsys):
        path = _write_csv(tmp_path / "pulse.csv")
        assert main.main(["--csv", str(path), "--log-every", "50"]) == 0
        out = capsys.readouterr().out
        assert "Heart rate:" in out
        assert "Waiting for signal" in out

    def test_missing_file(self, tmp_path):
        assert main.main(["--csv", str(tmp_path / "nope.csv")]) == 1

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("red,green,blue\n")
        assert main.main(["--csv", str(path)]) == 1

    def test_source_required(self):
        with pytest.raises(SystemExit):
            main.parse_args([])
