"""Unit tests for core.tts.interface module."""

from __future__ import annotations

import asyncio
import threading

import pytest

from core.tts.interface import (
    TTSAudioConversionError,
    TTSAuthenticationError,
    TTSErrorKind,
    TTSExceptionError,
    TTSInvalidResponseError,
    TTSNetworkError,
    TTSQuotaExceededError,
    TTSServerError,
    TTSVoiceNotSupportedError,
)
from models.config_models import Configuration
from tests.fakes import EN_US, FakeEngine


def test_every_error_carries_its_kind() -> None:
    errors: dict[type[TTSExceptionError], TTSErrorKind] = {
        TTSNetworkError: TTSErrorKind.NETWORK_ERROR,
        TTSAuthenticationError: TTSErrorKind.AUTHENTICATION_FAILED,
        TTSInvalidResponseError: TTSErrorKind.INVALID_RESPONSE,
        TTSVoiceNotSupportedError: TTSErrorKind.VOICE_NOT_SUPPORTED,
        TTSQuotaExceededError: TTSErrorKind.QUOTA_EXCEEDED,
        TTSAudioConversionError: TTSErrorKind.AUDIO_CONVERSION_FAILED,
    }
    for error_type, kind in errors.items():
        assert error_type.kind == kind
    assert {kind.value for kind in TTSErrorKind} == {
        "network_error",
        "authentication_failed",
        "invalid_response",
        "voice_not_supported",
        "quota_exceeded",
        "server_error",
        "audio_conversion_failed",
    }


def test_server_error_keeps_status() -> None:
    error = TTSServerError(503)
    assert error.status_code == 503
    assert error.kind == TTSErrorKind.SERVER_ERROR
    assert "503" in str(error)
    assert str(TTSServerError(500, "boom")) == "boom"


@pytest.mark.asyncio
async def test_speak_returns_after_synthesis() -> None:
    engine = FakeEngine()
    await engine.speak("hello", EN_US)

    assert engine.spoken == [("hello", EN_US.id)]
    assert engine.is_playing is False


@pytest.mark.asyncio
async def test_speak_propagates_engine_error() -> None:
    engine = FakeEngine(failures={"bad": TTSQuotaExceededError("limit")})

    with pytest.raises(TTSQuotaExceededError):
        await engine.speak("bad", EN_US)
    assert engine.is_playing is False


@pytest.mark.asyncio
async def test_stop_discards_utterance() -> None:
    engine = FakeEngine(hold=True)
    task = asyncio.create_task(engine.speak("held", EN_US))
    await asyncio.sleep(0)
    assert engine.is_playing is True

    engine.stop()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert engine.is_playing is False


def test_stop_when_idle_is_safe() -> None:
    engine = FakeEngine()
    engine.stop()
    engine.stop()
    assert engine.is_playing is False


@pytest.mark.asyncio
async def test_speak_while_playing_replaces_utterance(caplog: pytest.LogCaptureFixture) -> None:
    engine = FakeEngine(hold=True)
    first = asyncio.create_task(engine.speak("first", EN_US))
    await asyncio.sleep(0)

    second = asyncio.create_task(engine.speak("second", EN_US))
    await asyncio.sleep(0)
    engine.gate.set()
    await second

    with pytest.raises(asyncio.CancelledError):
        await first
    assert "already speaking" in caplog.text


def test_update_configuration() -> None:
    engine = FakeEngine()
    configuration = Configuration(rate=0.8)
    engine.update_configuration(configuration)
    assert engine.configuration is configuration


def test_report_progress_clamps_and_ignores_without_callback() -> None:
    engine = FakeEngine()
    engine.report_progress(0.5)

    received: list[float] = []
    engine.set_progress_callback(received.append)
    engine.report_progress(1.7)
    engine.report_progress(-1)

    assert received == [1.0, 0.0]


@pytest.mark.asyncio
async def test_report_progress_from_thread_runs_on_loop() -> None:
    engine = FakeEngine(hold=True)
    received: list[tuple[float, int]] = []
    engine.set_progress_callback(lambda value: received.append((value, threading.get_ident())))
    task = asyncio.create_task(engine.speak("text", EN_US))
    await asyncio.sleep(0)

    await asyncio.to_thread(engine.report_progress, 0.25)
    await asyncio.sleep(0)
    engine.gate.set()
    await task

    assert received == [(0.25, threading.get_ident())]


def test_default_capabilities() -> None:
    engine = FakeEngine()
    assert engine.is_paused is False
    assert engine.available_voices() == []
