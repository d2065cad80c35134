"""Unit tests for core.tts.engine_registry module."""

from __future__ import annotations

import pytest

from core.tts.engine_registry import EngineRegistry
from tests.fakes import FakeEngine


@pytest.fixture
def engines() -> tuple[FakeEngine, FakeEngine]:
    return FakeEngine("local"), FakeEngine("openai")


def test_empty_registry_has_no_active_engine() -> None:
    registry = EngineRegistry()
    assert registry.active is None
    assert len(registry) == 0
    assert registry.names == []


def test_first_registered_engine_becomes_active(engines: tuple[FakeEngine, FakeEngine]) -> None:
    local, openai = engines
    registry = EngineRegistry()

    registry.register(local)
    registry.register(openai)

    assert registry.active is local
    assert registry.engines == (local, openai)
    assert registry.names == ["local", "openai"]


def test_register_same_instance_twice_is_ignored(engines: tuple[FakeEngine, FakeEngine]) -> None:
    local, _ = engines
    registry = EngineRegistry(local)
    registry.register(local)
    assert len(registry) == 1


def test_set_active_by_name_and_instance(engines: tuple[FakeEngine, FakeEngine]) -> None:
    local, openai = engines
    registry = EngineRegistry(local, openai)

    assert registry.set_active("openai") is True
    assert registry.active is openai
    assert registry.set_active("openai") is False
    assert registry.set_active(local) is True
    assert registry.active is local


def test_set_active_unknown_keeps_current(
    engines: tuple[FakeEngine, FakeEngine], caplog: pytest.LogCaptureFixture
) -> None:
    local, _ = engines
    registry = EngineRegistry(local)

    assert registry.set_active("azure") is False
    assert registry.set_active(FakeEngine("stranger")) is False
    assert registry.active is local
    assert "keeping 'local'" in caplog.text


def test_get_and_contains(engines: tuple[FakeEngine, FakeEngine]) -> None:
    local, openai = engines
    registry = EngineRegistry(local)

    assert registry.get("local") is local
    assert registry.get("openai") is None
    assert local in registry
    assert openai not in registry
    assert list(registry) == [local]
