"""
Unit tests for the speaker playback sink.

A recording renderer stands in for the output device so the queueing and
completion semantics can be checked without audio hardware.
"""

import threading
from unittest.mock import AsyncMock, MagicMock, patch

import numpy as np
import pytest

from voicerelay.audio.playback import SpeakerPlayback
from voicerelay.exceptions import PlaybackError


class RecordingRenderer:
    def __init__(self, fail_on=None):
        self.rendered = []
        self.fail_on = fail_on or set()
        self._lock = threading.Lock()

    def __call__(self, buffer: bytes) -> None:
        if buffer in self.fail_on:
            raise RuntimeError("device disappeared")
        with self._lock:
            self.rendered.append(buffer)


async def drain(playback):
    """Wait until the worker has handled every queued buffer."""
    await playback._queue.join()


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def playback(audio_config, playback_config, renderer):
    return SpeakerPlayback(audio_config, playback_config, renderer=renderer)


class TestSpeakerPlayback:
    @pytest.mark.asyncio
    async def test_plays_buffer_and_calls_on_done_once(self, playback, renderer):
        on_done = MagicMock()

        assert playback.play(b"\x01\x00\x02\x00", on_done=on_done) is True
        await drain(playback)

        assert renderer.rendered == [b"\x01\x00\x02\x00"]
        on_done.assert_called_once_with()
        assert playback.buffers_played == 1
        assert playback.bytes_played == 4
        await playback.close()

    @pytest.mark.asyncio
    async def test_async_on_done_is_awaited(self, playback):
        on_done = AsyncMock()

        playback.play(b"\x00\x00", on_done=on_done)
        await drain(playback)

        on_done.assert_awaited_once()
        await playback.close()

    @pytest.mark.asyncio
    async def test_buffers_render_in_fifo_order(self, playback, renderer):
        done_order = []
        for index in range(3):
            playback.play(bytes([index, 0]), on_done=lambda index=index: done_order.append(index))

        await drain(playback)

        assert renderer.rendered == [b"\x00\x00", b"\x01\x00", b"\x02\x00"]
        assert done_order == [0, 1, 2]
        await playback.close()

    @pytest.mark.asyncio
    async def test_render_failure_skips_on_done_and_keeps_worker_alive(
        self, audio_config, playback_config
    ):
        renderer = RecordingRenderer(fail_on={b"\xff\xff"})
        playback = SpeakerPlayback(audio_config, playback_config, renderer=renderer)
        failed_done = MagicMock()
        next_done = MagicMock()

        playback.play(b"\xff\xff", on_done=failed_done)
        playback.play(b"\x01\x00", on_done=next_done)
        await drain(playback)

        failed_done.assert_not_called()
        next_done.assert_called_once()
        assert playback.buffers_failed == 1
        assert renderer.rendered == [b"\x01\x00"]
        await playback.close()

    @pytest.mark.asyncio
    async def test_failing_on_done_does_not_stop_worker(self, playback, renderer):
        playback.play(b"\x01\x00", on_done=MagicMock(side_effect=RuntimeError("callback")))
        playback.play(b"\x02\x00")
        await drain(playback)

        assert renderer.rendered == [b"\x01\x00", b"\x02\x00"]
        await playback.close()

    @pytest.mark.asyncio
    async def test_full_queue_drops_buffer(self, playback, playback_config):
        # the worker has not run yet, so nothing is dequeued
        results = [playback.play(b"\x00\x00") for _ in range(playback_config.queue_size + 1)]

        assert results == [True] * playback_config.queue_size + [False]
        await playback.close()

    @pytest.mark.asyncio
    async def test_close_drops_pending_and_rejects_new_buffers(self, playback, renderer):
        on_done = MagicMock()
        playback.play(b"\x00\x00", on_done=on_done)

        await playback.close()

        assert playback.pending == 0
        assert playback.play(b"\x00\x00") is False
        on_done.assert_not_called()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, playback):
        playback.start()
        await playback.close()
        await playback.close()

    @pytest.mark.asyncio
    async def test_statistics(self, playback):
        playback.play(b"\x00\x00\x00\x00")
        await drain(playback)

        stats = playback.get_statistics()
        assert stats == {
            "buffers_played": 1,
            "bytes_played": 4,
            "buffers_failed": 0,
            "pending": 0,
        }
        await playback.close()


class TestDeviceRender:
    def test_render_writes_samples_to_output_stream(self, audio_config, playback_config):
        sd = MagicMock()
        stream = sd.OutputStream.return_value.__enter__.return_value
        playback = SpeakerPlayback(audio_config, playback_config)

        with patch("voicerelay.audio.playback.load_sounddevice", return_value=sd):
            playback._render(b"\x01\x00\x02\x00\x03")

        kwargs = sd.OutputStream.call_args.kwargs
        assert kwargs["samplerate"] == 24000
        assert kwargs["dtype"] == "int16"
        samples = stream.write.call_args.args[0]
        assert samples.shape == (2, 1)
        np.testing.assert_array_equal(samples[:, 0], [1, 2])

    def test_render_device_failure_raises_playback_error(self, audio_config, playback_config):
        sd = MagicMock()
        sd.OutputStream.side_effect = RuntimeError("Invalid device")
        playback = SpeakerPlayback(audio_config, playback_config)

        with patch("voicerelay.audio.playback.load_sounddevice", return_value=sd):
            with pytest.raises(PlaybackError):
                playback._render(b"\x01\x00")

    def test_render_empty_buffer_skips_device(self, audio_config, playback_config):
        sd = MagicMock()
        playback = SpeakerPlayback(audio_config, playback_config)

        with patch("voicerelay.audio.playback.load_sounddevice", return_value=sd):
            playback._render(b"")

        sd.OutputStream.assert_not_called()
