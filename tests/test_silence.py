"""Tests for the RMS silence detector."""

import numpy as np
import pytest

from voicerelay.audio.silence import SilenceDetector

SAMPLE_RATE = 1000  # 1 frame per millisecond keeps the arithmetic readable


def loud(frames=10):
    return np.full((frames, 1), 8000, dtype=np.int16)


def quiet(frames=10):
    return np.zeros((frames, 1), dtype=np.int16)


@pytest.fixture
def detector():
    return SilenceDetector(threshold=0.01, timeout_ms=30, sample_rate=SAMPLE_RATE)


class TestSilenceDetector:
    def test_level_of_full_scale_square_wave(self, detector):
        samples = np.full(100, 32767, dtype=np.int16)
        assert detector.level(samples) == pytest.approx(1.0, abs=1e-3)

    def test_level_of_empty_block(self, detector):
        assert detector.level(np.zeros(0, dtype=np.int16)) == 0.0

    def test_leading_silence_does_not_trigger(self, detector):
        assert not any(detector.process(quiet()) for _ in range(10))

    def test_triggers_once_after_timeout(self, detector):
        assert detector.process(loud()) is False
        results = [detector.process(quiet()) for _ in range(10)]
        assert results.count(True) == 1
        # 30ms of silence are needed: the third quiet block fires
        assert results.index(True) == 2

    def test_speech_rearms_detector(self, detector):
        detector.process(loud())
        first = [detector.process(quiet()) for _ in range(5)]
        detector.process(loud())
        second = [detector.process(quiet()) for _ in range(5)]
        assert first.count(True) == 1
        assert second.count(True) == 1

    def test_speech_resets_silent_duration(self, detector):
        detector.process(loud())
        detector.process(quiet())
        detector.process(quiet())
        detector.process(loud())
        assert detector.silent_ms == 0
        assert detector.process(quiet()) is False
