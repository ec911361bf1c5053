"""
Tests for progress sinks.
"""

import logging

from ytscribe.progress import LoggingProgress, MonotonicProgress, NullProgress, ProgressSink, TqdmProgress


class Recorder(ProgressSink):
    def __init__(self):
        self.fractions = []

    def update(self, fraction, downloaded_bytes, total_bytes):
        self.fractions.append(fraction)


class TestMonotonicProgress:
    def test_drops_decreasing_values(self):
        recorder = Recorder()
        sink = MonotonicProgress(recorder)
        for value in (0.1, 0.3, 0.2, 0.3, 0.9):
            sink.update(value, 0, None)
        assert recorder.fractions == [0.1, 0.3, 0.3, 0.9]

    def test_clamps(self):
        recorder = Recorder()
        sink = MonotonicProgress(recorder)
        sink.update(-0.5, 0, None)
        sink.update(1.7, 0, None)
        assert recorder.fractions == [0.0, 1.0]

    def test_isolates_sink_errors(self, caplog):
        class Broken(ProgressSink):
            def update(self, fraction, downloaded_bytes, total_bytes):
                raise ValueError("bad sink")

            def close(self):
                raise ValueError("bad close")

        sink = MonotonicProgress(Broken())
        with caplog.at_level(logging.WARNING):
            sink.update(0.5, 1, 2)
            sink.close()
        assert "bad sink" in caplog.text
        assert "bad close" in caplog.text

    def test_defaults_to_null_sink(self):
        sink = MonotonicProgress()
        assert isinstance(sink.sink, NullProgress)
        sink.update(0.5, 1, 2)


class TestLoggingProgress:
    def test_logs_each_step(self, caplog):
        sink = LoggingProgress(step=0.25)
        with caplog.at_level(logging.INFO, logger="ytscribe.progress"):
            for done in (0, 10, 30, 60, 99, 100):
                sink.update(done / 100, done * 1024 * 1024, 100 * 1024 * 1024)
        lines = [r.getMessage() for r in caplog.records]
        assert lines == [
            "Downloading: 0.00% of 100.00 MB",
            "Downloading: 30.00% of 100.00 MB",
            "Downloading: 60.00% of 100.00 MB",
            "Downloading: 99.00% of 100.00 MB",
            "Downloading: 100.00% of 100.00 MB",
        ]


class TestTqdmProgress:
    def test_tracks_bytes(self):
        sink = TqdmProgress()
        sink.update(0.25, 25, 100)
        sink.update(0.75, 75, 100)
        assert sink._bar.n == 75
        assert sink._bar.total == 100
        sink.close()
        assert sink._bar is None
