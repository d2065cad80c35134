"""Unit tests for core.tts.audio_playback_manager module."""

from __future__ import annotations

import asyncio
from io import BytesIO
from typing import Any
from unittest.mock import MagicMock

import numpy as np
import pytest
import soundfile

from core.tts import audio_playback_manager as apm
from core.tts.audio_playback_manager import AudioPlaybackManager, _PlaybackState, _stream_callback_logic
from core.tts.interface import TTSAudioConversionError


def _wav(frames: int = 4000, samplerate: int = 8000, channels: int = 1, value: float = 0.5) -> bytes:
    shape: tuple[int, ...] = (frames,) if channels == 1 else (frames, channels)
    buffer = BytesIO()
    soundfile.write(buffer, np.full(shape, value, dtype=np.float32), samplerate, format="WAV")
    return buffer.getvalue()


class _DrivenPyAudio:
    """Runs the stream callback to completion as soon as the stream starts."""

    def __init__(self) -> None:
        self.open_kwargs: dict[str, Any] = {}
        self.stream = MagicMock()
        # Polls made after the last callback that still report the stream as active
        self.tail_polls: int = 0
        self.stream.is_active.side_effect = self._is_active
        self.terminated = False

    def _is_active(self) -> bool:
        if self.tail_polls > 0:
            self.tail_polls -= 1
            return True
        return False

    def open(self, **kwargs: Any) -> MagicMock:
        self.open_kwargs = kwargs
        callback = kwargs["stream_callback"]
        frames: int = kwargs["frames_per_buffer"]

        def _drive() -> None:
            while True:
                _, flag = callback(None, frames, None, 0)
                if flag != apm.pyaudio.paContinue:
                    return

        self.stream.start_stream.side_effect = _drive
        return self.stream

    def terminate(self) -> None:
        self.terminated = True


@pytest.fixture
def driven(monkeypatch: pytest.MonkeyPatch) -> _DrivenPyAudio:
    fake = _DrivenPyAudio()
    monkeypatch.setattr(apm.pyaudio, "PyAudio", lambda: fake)
    return fake


@pytest.fixture
def idle_stream(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    stream = MagicMock()
    pyaudio_instance = MagicMock()
    pyaudio_instance.open.return_value = stream
    monkeypatch.setattr(apm.pyaudio, "PyAudio", MagicMock(return_value=pyaudio_instance))
    return stream


def test_decode_rejects_empty_data() -> None:
    with pytest.raises(TTSAudioConversionError, match="No audio data"):
        AudioPlaybackManager.decode(b"")


def test_decode_rejects_garbage() -> None:
    with pytest.raises(TTSAudioConversionError, match="decoding failed"):
        AudioPlaybackManager.decode(b"this is not audio at all")


def test_decode_applies_volume() -> None:
    pcm, samplerate = AudioPlaybackManager.decode(_wav(frames=10), volume=0.5)

    assert samplerate == 8000
    assert pcm.dtype == np.float32
    assert pcm == pytest.approx(np.full(10, 0.25, dtype=np.float32), abs=1e-3)


def test_decode_clamps_volume() -> None:
    pcm, _ = AudioPlaybackManager.decode(_wav(frames=10), volume=3.0)
    assert float(pcm.max()) == pytest.approx(0.5, abs=1e-3)


@pytest.mark.asyncio
async def test_play_streams_until_complete(driven: _DrivenPyAudio) -> None:
    manager = AudioPlaybackManager()
    progress: list[float] = []

    await asyncio.wait_for(manager.play(_wav(), progress=progress.append), timeout=1.0)

    assert driven.open_kwargs["format"] == apm.pyaudio.paFloat32
    assert driven.open_kwargs["channels"] == 1
    assert driven.open_kwargs["rate"] == 8000
    assert driven.open_kwargs["frames_per_buffer"] == 2048
    assert progress[-1] == pytest.approx(1.0)
    assert progress == sorted(progress)
    driven.stream.close.assert_called_once()
    assert manager.stream is None
    assert manager.is_playing is False


@pytest.mark.asyncio
async def test_play_waits_for_last_buffers_before_closing(driven: _DrivenPyAudio) -> None:
    driven.tail_polls = 3
    closed_while_active: list[bool] = []
    driven.stream.close.side_effect = lambda: closed_while_active.append(driven.tail_polls > 0)

    await asyncio.wait_for(AudioPlaybackManager().play(_wav()), timeout=1.0)

    assert driven.stream.is_active.call_count == 4
    assert closed_while_active == [False]


@pytest.mark.asyncio
async def test_play_gives_up_on_a_stream_that_never_drains(driven: _DrivenPyAudio) -> None:
    driven.tail_polls = 1_000_000
    manager = AudioPlaybackManager()

    await asyncio.wait_for(manager.play(_wav()), timeout=2.0)

    driven.stream.close.assert_called_once()
    assert manager.stream is None


@pytest.mark.asyncio
async def test_stop_during_drain_ends_play(driven: _DrivenPyAudio) -> None:
    driven.tail_polls = 1_000_000
    manager = AudioPlaybackManager()
    task = asyncio.create_task(manager.play(_wav()))
    await asyncio.sleep(0.02)

    manager.stop()
    await asyncio.wait_for(task, timeout=0.2)

    driven.stream.close.assert_called_once()


@pytest.mark.asyncio
async def test_play_stereo(driven: _DrivenPyAudio) -> None:
    await asyncio.wait_for(AudioPlaybackManager().play(_wav(channels=2)), timeout=1.0)
    assert driven.open_kwargs["channels"] == 2


@pytest.mark.asyncio
async def test_play_device_error(monkeypatch: pytest.MonkeyPatch) -> None:
    pyaudio_instance = MagicMock()
    pyaudio_instance.open.side_effect = OSError("no output device")
    monkeypatch.setattr(apm.pyaudio, "PyAudio", MagicMock(return_value=pyaudio_instance))

    with pytest.raises(TTSAudioConversionError, match="no output device"):
        await AudioPlaybackManager().play(_wav())


@pytest.mark.asyncio
async def test_stop_ends_play(idle_stream: MagicMock) -> None:
    manager = AudioPlaybackManager()
    task = asyncio.create_task(manager.play(_wav()))
    await asyncio.sleep(0)

    manager.stop()
    await asyncio.wait_for(task, timeout=1.0)

    idle_stream.close.assert_called()
    assert manager.stream is None


@pytest.mark.asyncio
async def test_cancel_closes_stream(idle_stream: MagicMock) -> None:
    manager = AudioPlaybackManager()
    task = asyncio.create_task(manager.play(_wav()))
    await asyncio.sleep(0)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    idle_stream.close.assert_called_once()
    assert manager._state is None


@pytest.mark.asyncio
async def test_pause_and_resume(idle_stream: MagicMock) -> None:
    manager = AudioPlaybackManager()
    task = asyncio.create_task(manager.play(_wav()))
    await asyncio.sleep(0)

    manager.pause()
    manager.pause()
    assert manager.is_paused is True
    idle_stream.stop_stream.assert_called_once()

    manager.resume()
    assert manager.is_paused is False
    assert idle_stream.start_stream.call_count == 2

    manager.stop()
    await task


def test_pause_without_stream_is_ignored() -> None:
    manager = AudioPlaybackManager()
    manager.pause()
    manager.resume()
    manager.stop()
    assert manager.is_paused is False


def test_release_pyaudio_terminates(driven: _DrivenPyAudio) -> None:
    manager = AudioPlaybackManager()
    assert manager.pyaudio is driven

    manager.release_pyaudio()

    assert driven.terminated is True
    assert manager._pyaudio is None


def test_callback_aborts_when_stopped() -> None:
    loop = MagicMock()
    state = _PlaybackState(pcm=np.zeros(100, dtype=np.float32), loop=loop, finished=asyncio.Event(), aborted=True)

    data, flag = _stream_callback_logic(None, 10, None, 0, state=state)

    assert data is None
    assert flag == apm.pyaudio.paAbort
    loop.call_soon_threadsafe.assert_called_once()


def test_callback_continues_then_completes() -> None:
    state = _PlaybackState(pcm=np.zeros(15, dtype=np.float32), loop=MagicMock(), finished=asyncio.Event())

    _, first = _stream_callback_logic(None, 10, None, 0, state=state)
    data, second = _stream_callback_logic(None, 10, None, 0, state=state)

    assert first == apm.pyaudio.paContinue
    assert second == apm.pyaudio.paComplete
    assert data is not None
    assert len(data) == 5 * 4
