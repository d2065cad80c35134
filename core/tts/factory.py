"""Builds a ready-to-use ``PlaybackSession`` from the INI application settings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from config.store import ConfigurationStore, FileKeyValueStore, MemoryKeyValueStore
from core.tts.engine_registry import EngineRegistry
from core.tts.engines import (
    AITTSEngine,
    AzureTTSService,
    GoogleText2Speech,
    LocalEngine,
    OpenAITTSService,
)
from core.tts.session import PlaybackSession
from core.tts.voice_catalog import VoiceCatalog
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from config.store import KeyValueStore
    from core.tts.interface import Interface
    from models.config_models import Config

__all__: list[str] = ["ENGINE_BUILDERS", "create_engines", "create_session", "create_store"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


def _local(config: Config) -> Interface:
    _ = config
    return LocalEngine()


def _openai(config: Config) -> Interface:
    return AITTSEngine(
        OpenAITTSService(config.OPENAI.API_KEY, model=config.OPENAI.MODEL, timeout=config.OPENAI.TIMEOUT)
    )


def _azure(config: Config) -> Interface:
    return AITTSEngine(
        AzureTTSService(config.AZURE.SUBSCRIPTION_KEY, config.AZURE.REGION, timeout=config.AZURE.TIMEOUT)
    )


def _gtts(config: Config) -> Interface:
    return AITTSEngine(GoogleText2Speech(tld=config.GTTS.TLD, timeout=config.GTTS.TIMEOUT))


ENGINE_BUILDERS: Final[dict[str, Callable[[Config], Interface]]] = {
    "local": _local,
    "openai": _openai,
    "azure": _azure,
    "gtts": _gtts,
}


def create_engines(config: Config) -> list[Interface]:
    """Instantiate the enabled engines, the default engine first.

    Returns:
        list[Interface]: Engines in registration order.
    """
    names: list[str] = [config.ENGINE.DEFAULT, *(name for name in config.ENGINE.ENABLED if name != config.ENGINE.DEFAULT)]
    engines: list[Interface] = []
    for name in names:
        builder: Callable[[Config], Interface] | None = ENGINE_BUILDERS.get(name)
        if builder is None:
            logger.warning("Unknown engine '%s' skipped", name)
            continue
        engines.append(builder(config))
        logger.debug("Engine '%s' created", name)
    return engines


def create_store(config: Config) -> ConfigurationStore:
    """Persist to ``STORAGE.DIRECTORY`` when set, otherwise keep everything in memory."""
    backend: KeyValueStore
    if config.STORAGE.DIRECTORY:
        backend = FileKeyValueStore(config.STORAGE.DIRECTORY)
        logger.info("Playback data stored in '%s'", config.STORAGE.DIRECTORY)
    else:
        backend = MemoryKeyValueStore()
    return ConfigurationStore(backend)


def create_session(config: Config, *, session_logger: logging.Logger | None = None) -> PlaybackSession:
    """Wire engines, voice catalog and store into a session.

    The catalog lists the voices of every enabled engine. The default engine is active.

    Raises:
        ValueError: If no engine could be created.
    """
    engines: list[Interface] = create_engines(config)
    registry = EngineRegistry(*engines)
    catalog = VoiceCatalog([engine.available_voices for engine in engines])
    return PlaybackSession(registry, catalog, create_store(config), session_logger=session_logger)
