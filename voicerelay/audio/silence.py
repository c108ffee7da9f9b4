"""
Near-silence detection for captured audio.

Each captured block is reduced to a normalized RMS level. Once the level stays
below the threshold for the configured duration, one silence event is reported.
The detector re-arms when speech is heard again, so each pause after speech
produces exactly one event and leading silence produces none.
"""

import numpy as np


class SilenceDetector:
    """Tracks how long the input has been quiet.

    Attributes:
        threshold: Normalized RMS level (0..1) below which a block is silent
        timeout_ms: Duration of continuous silence that triggers an event
        sample_rate: Frames per second of the analyzed audio
    """

    def __init__(self, threshold: float, timeout_ms: int, sample_rate: int, bits_per_sample: int = 16):
        self.threshold = threshold
        self.timeout_ms = timeout_ms
        self.sample_rate = sample_rate
        self._full_scale = float(2 ** (bits_per_sample - 1))
        self._silent_frames = 0
        self._armed = False
        self.last_level = 0.0

    @property
    def silent_ms(self) -> float:
        return self._silent_frames * 1000.0 / self.sample_rate

    def level(self, samples: np.ndarray) -> float:
        """Normalized RMS level of a block of integer samples."""
        if samples.size == 0:
            return 0.0
        rms = np.sqrt(np.mean(samples.astype(np.float64) ** 2))
        return float(rms / self._full_scale)

    def process(self, samples: np.ndarray) -> bool:
        """Feed one captured block; returns True when a silence event is due.

        Args:
            samples: Block of shape (frames,) or (frames, channels)
        """
        frames = samples.shape[0] if samples.ndim else 0
        self.last_level = self.level(samples)

        if self.last_level >= self.threshold:
            self._silent_frames = 0
            self._armed = True
            return False

        self._silent_frames += frames
        if self._armed and self.silent_ms >= self.timeout_ms:
            self._armed = False
            return True
        return False
