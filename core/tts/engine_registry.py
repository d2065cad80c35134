from __future__ import annotations

from typing import TYPE_CHECKING

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Iterator

    from core.tts.interface import Interface

__all__: list[str] = ["EngineRegistry"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class EngineRegistry:
    """Ordered set of speech engines with one of them marked active.

    Engines are only ever appended. The first engine registered becomes active; later
    registrations leave the active engine alone. Selecting an engine that is not registered
    keeps the current one.
    """

    def __init__(self, *engines: Interface) -> None:
        self._engines: list[Interface] = []
        self._active: Interface | None = None
        for engine in engines:
            self.register(engine)

    def __len__(self) -> int:
        return len(self._engines)

    def __iter__(self) -> Iterator[Interface]:
        return iter(tuple(self._engines))

    def __contains__(self, item: object) -> bool:
        return any(engine is item for engine in self._engines)

    @property
    def engines(self) -> tuple[Interface, ...]:
        return tuple(self._engines)

    @property
    def active(self) -> Interface | None:
        """The engine utterances are dispatched to; None only while the registry is empty."""
        return self._active

    @property
    def names(self) -> list[str]:
        return [engine.engine_name for engine in self._engines]

    def register(self, engine: Interface) -> None:
        """Append an engine. Registering the same instance twice has no effect."""
        if engine in self:
            logger.debug("Engine '%s' is already registered", engine.engine_name)
            return
        self._engines.append(engine)
        logger.info("Registered speech engine '%s'", engine.engine_name)
        if self._active is None:
            self._active = engine

    def get(self, name: str) -> Interface | None:
        """Return the first registered engine with the given name."""
        return next((engine for engine in self._engines if engine.engine_name == name), None)

    def set_active(self, selector: str | Interface) -> bool:
        """Make another registered engine active.

        Args:
            selector (str | Interface): Engine name or engine instance.

        Returns:
            bool: True if the active engine changed, False if nothing matched or it was already active.
        """
        target: Interface | None
        if isinstance(selector, str):
            target = self.get(selector)
        else:
            target = selector if selector in self else None

        if target is None:
            logger.warning("No registered engine matches '%s'; keeping '%s'", selector, self._name(self._active))
            return False
        if target is self._active:
            return False

        logger.info("Active speech engine: '%s' -> '%s'", self._name(self._active), target.engine_name)
        self._active = target
        return True

    @staticmethod
    def _name(engine: Interface | None) -> str:
        return engine.engine_name if engine is not None else "none"
