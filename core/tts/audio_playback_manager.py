from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field
from functools import partial
from io import BytesIO
from typing import TYPE_CHECKING, Any, Final

import numpy as np
import pyaudio
import soundfile

from core.tts.interface import TTSAudioConversionError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

__all__: list[str] = ["AudioPlaybackManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

DRAIN_POLL_INTERVAL: Final[float] = 0.01
# Added to two buffer lengths when waiting for the device to play out the tail
DRAIN_MARGIN: Final[float] = 0.1


@dataclass
class _PlaybackState:
    """Shared between the event loop and the PortAudio callback thread."""

    pcm: np.ndarray[Any, np.dtype[np.float32]]
    loop: asyncio.AbstractEventLoop
    finished: asyncio.Event
    progress: Callable[[float], None] | None = None
    position: int = 0
    aborted: bool = False
    error: str | None = field(default=None)

    @property
    def total_frames(self) -> int:
        return int(self.pcm.shape[0])

    def signal_finished(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.finished.set)
        except RuntimeError as err:
            # Event loop already closed
            logger.debug("Playback completion dropped: %s", err)


def _stream_callback_logic(
    in_data,
    frame_count,
    time_info,
    status,
    /,
    state: _PlaybackState,
) -> tuple[bytes | None, int]:
    """Callback function for the PyAudio stream.

    Copies the next ``frame_count`` frames of decoded audio into the output buffer and reports
    the playback position.

    Args:
        in_data: Input data (not used).
        frame_count: Number of frames to read.
        time_info: Time information (not used).
        status: Status information (not used).
        state (_PlaybackState): Decoded audio and completion signalling.

    Returns:
        tuple[bytes | None, int]: Audio data and playback status.
    """
    # The first four are position-only arguments.
    # The order of definitions cannot be changed.
    _ = in_data
    _ = time_info
    _ = status
    if state.aborted:
        state.signal_finished()
        return (None, pyaudio.paAbort)

    try:
        start: int = state.position
        chunk = state.pcm[start : start + frame_count]
        state.position = start + chunk.shape[0]
        if state.progress is not None and state.total_frames:
            state.progress(state.position / state.total_frames)
    except (RuntimeError, ValueError) as err:
        state.error = str(err)
        state.signal_finished()
        return (None, pyaudio.paAbort)

    # Considered complete when there is no more data to playback.
    # PortAudio still plays the returned buffers after paComplete; play() drains them.
    if chunk.shape[0] < frame_count:
        state.signal_finished()
        return (chunk.tobytes(), pyaudio.paComplete)
    return (chunk.tobytes(), pyaudio.paContinue)


class AudioPlaybackManager:
    """Plays synthesized audio through PyAudio.

    Audio bytes in any container soundfile can read (WAV, FLAC, OGG, MP3) are decoded to float32,
    scaled by the volume and streamed from memory. One clip plays at a time.
    """

    def __init__(self) -> None:
        self._pyaudio: pyaudio.PyAudio | None = None
        self.stream: pyaudio.Stream | None = None
        self._state: _PlaybackState | None = None
        self._paused: bool = False

    @staticmethod
    def decode(data: bytes, volume: float = 1.0) -> tuple[np.ndarray[Any, np.dtype[np.float32]], int]:
        """Decode audio bytes to float32 PCM.

        Args:
            data (bytes): Encoded audio.
            volume (float): Linear gain in the range 0.0 to 1.0.

        Returns:
            tuple[np.ndarray, int]: Frames and the sample rate.

        Raises:
            TTSAudioConversionError: If the data is not decodable audio.
        """
        if not data:
            msg = "No audio data to decode"
            raise TTSAudioConversionError(msg)
        try:
            raw_pcm, samplerate = soundfile.read(BytesIO(data), dtype="float32")
        except (soundfile.LibsndfileError, soundfile.SoundFileRuntimeError, TypeError, ValueError) as err:
            msg = f"Audio decoding failed: {err}"
            raise TTSAudioConversionError(msg) from err

        pcm = np.ascontiguousarray(raw_pcm, dtype=np.float32)
        # Skip the volume conversion at full volume
        gain: float = max(0.0, min(1.0, volume))
        if gain != 1.0:
            pcm *= gain
        return pcm, int(samplerate)

    async def play(
        self,
        data: bytes,
        *,
        volume: float = 1.0,
        progress: Callable[[float], None] | None = None,
    ) -> None:
        """Play audio bytes, returning once playback has finished.

        Args:
            data (bytes): Encoded audio.
            volume (float): Linear gain in the range 0.0 to 1.0.
            progress (Callable[[float], None] | None): Called from the audio thread with the
                played fraction.

        Raises:
            TTSAudioConversionError: If the audio cannot be decoded or the device fails.
            asyncio.CancelledError: If the playing task was cancelled; the stream is closed first.
        """
        pcm, samplerate = self.decode(data, volume)
        channels: int = 1 if pcm.ndim == 1 else int(pcm.shape[1])
        state = _PlaybackState(pcm=pcm, loop=asyncio.get_running_loop(), finished=asyncio.Event(), progress=progress)

        if self._state is not None:
            logger.warning("Playback already in progress; stopping it")
            self.stop()
        self._state = state
        self._paused = False

        # The buffer size is set to 0.2 seconds of audio data.
        frame_buffer_size: int = max(2048, int(samplerate * 0.2))
        logger.debug(
            "Audio properties - Channels: %s, Sampling rate: %s, Buffer size: %s",
            channels,
            samplerate,
            frame_buffer_size,
        )
        try:
            self.stream = self.pyaudio.open(
                format=pyaudio.paFloat32,
                channels=channels,
                rate=samplerate,
                output=True,
                frames_per_buffer=frame_buffer_size,
                stream_callback=partial(_stream_callback_logic, state=state),
            )
            self.stream.start_stream()
            await state.finished.wait()
            if not state.aborted and state.error is None:
                await self._drain(state, 2 * frame_buffer_size / samplerate + DRAIN_MARGIN)
        except OSError as err:
            msg = f"Audio device error: {err}"
            raise TTSAudioConversionError(msg) from err
        finally:
            state.aborted = True
            self._close_stream()
            if self._state is state:
                self._state = None
            self._paused = False

        if state.error is not None:
            msg = f"Audio playback failed: {state.error}"
            raise TTSAudioConversionError(msg)
        logger.debug("Playback completed")

    async def _drain(self, state: _PlaybackState, limit: float) -> None:
        """Wait until the stream has played its last buffers, at most ``limit`` seconds."""
        deadline: float = state.loop.time() + limit
        while not state.aborted and (stream := self.stream) is not None and state.loop.time() < deadline:
            if not stream.is_active():
                return
            await asyncio.sleep(DRAIN_POLL_INTERVAL)
        if not state.aborted and state.loop.time() >= deadline:
            logger.debug("Audio stream still active after %.2f seconds; closing it", limit)

    @property
    def is_playing(self) -> bool:
        if self.stream is None:
            return False
        return self.stream.is_active()

    @property
    def is_paused(self) -> bool:
        return self._paused

    def pause(self) -> None:
        if self.stream is None or self._paused:
            return
        try:
            self.stream.stop_stream()
        except OSError as err:
            logger.error("Failed to pause the audio stream: %s", err)
            return
        self._paused = True
        logger.debug("Playback paused")

    def resume(self) -> None:
        if self.stream is None or not self._paused:
            return
        try:
            self.stream.start_stream()
        except OSError as err:
            logger.error("Failed to resume the audio stream: %s", err)
            return
        self._paused = False
        logger.debug("Playback resumed")

    def stop(self) -> None:
        """Silence the current clip; its ``play`` call finishes right away."""
        state: _PlaybackState | None = self._state
        if state is None:
            return
        state.aborted = True
        state.finished.set()
        self._close_stream()
        self._paused = False

    def _close_stream(self) -> None:
        stream: pyaudio.Stream | None = self.stream
        self.stream = None
        if stream is None:
            return
        with contextlib.suppress(OSError):
            stream.stop_stream()
        with contextlib.suppress(OSError):
            stream.close()

    @property
    def pyaudio(self) -> pyaudio.PyAudio:
        """Gets the PyAudio instance, creating it if necessary.

        Returns:
            pyaudio.PyAudio: The PyAudio instance.
        """
        if self._pyaudio is None:
            self._pyaudio = pyaudio.PyAudio()
            logger.info("PyAudio instance created")
        return self._pyaudio

    def release_pyaudio(self) -> None:
        """Releases the PyAudio resources."""
        self.stop()
        if self._pyaudio is not None:
            self._pyaudio.terminate()
            self._pyaudio = None
            logger.info("PyAudio resources released")
