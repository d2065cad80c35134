import logging
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from handlers.async_comm import (
    AsyncCommError,
    AsyncCommInvalidContentTypeError,
    AsyncCommTimeoutError,
    AsyncHttp,
)


class FakeResponse:
    def __init__(self, body: bytes, content_type: str) -> None:
        self.headers: dict[str, str] = {"Content-Type": content_type}
        self.read = AsyncMock(return_value=body)
        self.raise_for_status = MagicMock()


class FakeRequest:
    def __init__(self, response: FakeResponse | None = None, error: BaseException | None = None) -> None:
        self.response = response
        self.error = error

    async def __aenter__(self) -> FakeResponse:
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response

    async def __aexit__(self, *exc: object) -> None:
        return None


def _install(monkeypatch: pytest.MonkeyPatch, request: FakeRequest) -> MagicMock:
    session = MagicMock()
    session.request = MagicMock(return_value=request)
    monkeypatch.setattr(AsyncHttp, "session", property(lambda _self: session))
    return session


@pytest.mark.asyncio
async def test_session_created_lazily(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG)

    http = AsyncHttp()
    assert http.is_open is False
    assert not any("session initialized" in rec.message for rec in caplog.records)

    async with http:
        assert http.is_open is True
    assert http.is_open is False
    assert any("AsyncHttp session initialized" in rec.message for rec in caplog.records)


def test_session_raises_when_it_cannot_be_created(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(AsyncHttp, "initialize_session", lambda _self: None)

    with pytest.raises(RuntimeError, match="not initialized"):
        _ = AsyncHttp().session


@pytest.mark.asyncio
async def test_close_without_session_is_safe() -> None:
    http = AsyncHttp()
    await http.close()
    assert http.is_open is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("content_type", "body", "expected"),
    [
        ("audio/wav", b"RIFF", b"RIFF"),
        ("audio/mpeg", b"ID3", b"ID3"),
        ("Application/Octet-Stream", b"\x00\x01", b"\x00\x01"),
        ("application/json; charset=utf-8", b'{"a": 1}', {"a": 1}),
        ("text/plain", "héllo".encode(), "héllo"),
    ],
)
async def test_decode_response(content_type: str, body: bytes, expected: Any) -> None:
    result = await AsyncHttp().decode_response(FakeResponse(body, content_type))  # type: ignore[arg-type]
    assert result == expected


@pytest.mark.asyncio
async def test_decode_empty_body() -> None:
    assert await AsyncHttp().decode_response(FakeResponse(b"", "audio/wav")) is None  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_decode_unknown_content_type() -> None:
    with pytest.raises(AsyncCommInvalidContentTypeError) as excinfo:
        await AsyncHttp().decode_response(FakeResponse(b"<x/>", "application/xml"))  # type: ignore[arg-type]
    assert excinfo.value.content_type == "application/xml"


def test_add_handler_replaces(caplog: pytest.LogCaptureFixture) -> None:
    http = AsyncHttp()
    http.add_handler("audio/wav", len)
    assert http.content_handlers["audio/wav"] is len
    assert "already exists" in caplog.text


@pytest.mark.asyncio
async def test_post_sends_json(monkeypatch: pytest.MonkeyPatch) -> None:
    session = _install(monkeypatch, FakeRequest(FakeResponse(b"RIFF", "audio/wav")))

    result = await AsyncHttp().post(url="https://tts.example/v1", headers={"X": "1"}, json_data={"input": "hi"})

    assert result == b"RIFF"
    kwargs = session.request.call_args.kwargs
    assert kwargs["method"] == "POST"
    assert kwargs["json"] == {"input": "hi"}
    assert "data" not in kwargs
    assert kwargs["headers"] == {"X": "1"}
    assert kwargs["timeout"].total == 10.0
    assert kwargs["timeout"].connect == 1.0


@pytest.mark.asyncio
async def test_post_sends_raw_data(monkeypatch: pytest.MonkeyPatch) -> None:
    session = _install(monkeypatch, FakeRequest(FakeResponse(b"RIFF", "audio/wav")))

    await AsyncHttp().post(url="https://tts.example/v1", data=b"<speak/>", total_timeout=0)

    kwargs = session.request.call_args.kwargs
    assert kwargs["data"] == b"<speak/>"
    assert kwargs["timeout"].total is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "expected", "status"),
    [
        (TimeoutError(), AsyncCommTimeoutError, None),
        (
            aiohttp.ClientResponseError(
                request_info=SimpleNamespace(real_url="https://tts.example"),  # type: ignore[arg-type]
                history=(),
                status=429,
            ),
            AsyncCommError,
            429,
        ),
        (ConnectionResetError(), AsyncCommError, None),
        (aiohttp.ClientConnectionError("refused"), AsyncCommError, None),
    ],
)
async def test_transport_errors(
    monkeypatch: pytest.MonkeyPatch, error: BaseException, expected: type[AsyncCommError], status: int | None
) -> None:
    _install(monkeypatch, FakeRequest(error=error))

    with pytest.raises(expected) as excinfo:
        await AsyncHttp().post(url="https://tts.example/v1", data=b"x")
    assert excinfo.value.status == status
    assert excinfo.value.__cause__ is error


def test_comm_error_message_includes_status() -> None:
    assert str(AsyncCommError("Error response", status=503)) == "Error response: status='503'"
    assert AsyncCommError("plain").status is None
