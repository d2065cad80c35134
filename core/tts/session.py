"""Playback session: the queue, the voice policy and the lifecycle state machine.

All state lives on the event loop that drives the session. Every public method is a plain
synchronous call that must be made from that loop. Playback itself runs in one owned task,
so two state transitions never interleave. Each dispatch carries a generation number. ``stop``
and every restart bump it, so an utterance, delay or progress report that belongs to an older
generation can no longer touch the state.
"""

from __future__ import annotations

import asyncio
from functools import partial
from typing import TYPE_CHECKING, Final

from core.tts.event_bus import EventBus
from core.tts.interface import TTSAudioConversionError, TTSExceptionError
from models.config_models import PlaybackHistoryItem
from models.event_models import TTSEvent
from models.voice_models import Gender, LanguageTag, Sentence, Voice, VoiceSource
from utils.logger_utils import LoggerUtils
from utils.tts_utils import TTSUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Iterable

    from config.store import ConfigurationStore
    from core.tts.engine_registry import EngineRegistry
    from core.tts.event_bus import EventStream
    from core.tts.interface import Interface
    from core.tts.voice_catalog import VoiceCatalog
    from models.config_models import Configuration

__all__: list[str] = ["DEFAULT_VOICE", "PlaybackSession"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

DEFAULT_VOICE: Final[Voice] = Voice(
    id="default",
    name="Default",
    language=LanguageTag("en-US"),
    gender=Gender.NEUTRAL,
    source=VoiceSource.LOCAL,
)


def _current_task() -> asyncio.Task[object] | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class PlaybackSession:
    """Plays single utterances and sentence queues through the active engine.

    Observers follow the session through ``events``: ``started`` -> ``progress_changed``* ->
    ``completed`` | ``error`` for every sentence, ``queue_completed`` once a queue ran to its end,
    plus ``paused``, ``resumed`` and ``stopped``.

    A failing sentence halts the queue; nothing is retried or skipped. ``play_queue`` can
    restart from any index afterwards.
    """

    def __init__(
        self,
        registry: EngineRegistry,
        catalog: VoiceCatalog,
        store: ConfigurationStore,
        *,
        segmenter: Callable[[str], list[str]] = TTSUtils.split_into_sentences,
        session_logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            registry (EngineRegistry): Engines to dispatch to; must contain at least one engine.
            catalog (VoiceCatalog): Source of voices and language detection.
            store (ConfigurationStore): Persistence for configuration, preferences and history.
            segmenter (Callable[[str], list[str]]): Splits text into sentences for ``add_text_to_queue``.
            session_logger (logging.Logger | None): Logger to use instead of the module logger.

        Raises:
            ValueError: If the registry has no engine.
        """
        if registry.active is None:
            msg = "PlaybackSession needs at least one registered engine"
            raise ValueError(msg)

        self._registry: EngineRegistry = registry
        self._catalog: VoiceCatalog = catalog
        self._store: ConfigurationStore = store
        self._segmenter: Callable[[str], list[str]] = segmenter
        self._logger: logging.Logger = session_logger or logger
        self._bus: EventBus[TTSEvent] = EventBus()

        self._configuration: Configuration = store.load()
        self._available_voices: list[Voice] = catalog.get_all_voices()

        self._is_playing: bool = False
        self._is_paused: bool = False
        self._current_sentence: Sentence | None = None
        self._current_progress: float = 0.0
        self._queue: list[Sentence] = []
        self._current_index: int = 0

        self._generation: int = 0
        self._task: asyncio.Task[None] | None = None
        self._speaking: bool = False
        # Cleared while paused; queue traversal waits on it before dispatching the next sentence.
        self._unpaused: asyncio.Event = asyncio.Event()
        self._unpaused.set()

    # Observable state

    @property
    def events(self) -> EventStream[TTSEvent]:
        return self._bus.stream

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    @property
    def current_sentence(self) -> Sentence | None:
        return self._current_sentence

    @property
    def current_progress(self) -> float:
        return self._current_progress

    @property
    def queue(self) -> tuple[Sentence, ...]:
        return tuple(self._queue)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def configuration(self) -> Configuration:
        """A copy of the live configuration; change it through ``update_configuration``."""
        return self._configuration.copy()

    @property
    def available_voices(self) -> list[Voice]:
        return list(self._available_voices)

    @property
    def engines(self) -> EngineRegistry:
        return self._registry

    @property
    def active_engine(self) -> Interface:
        engine: Interface | None = self._registry.active
        if engine is None:
            msg = "No active engine"
            raise RuntimeError(msg)
        return engine

    # Single utterances

    def speak(self, text: str, voice: Voice | None = None) -> None:
        """Stop whatever is playing and speak one text."""
        self.speak_sentence(Sentence(text=text, voice=voice))

    def speak_sentence(self, sentence: Sentence) -> None:
        """Stop playback, which always emits ``stopped``, then speak one sentence."""
        self.stop()
        generation: int = self._generation
        self._task = asyncio.create_task(self._speak_once(sentence, generation), name="tts_speak")

    def preview_voice(self, voice: Voice) -> None:
        """Speak the sample sentence for the voice's language with that voice."""
        self.speak(self._catalog.get_preview_text(voice.language), voice)

    async def _speak_once(self, sentence: Sentence, generation: int) -> None:
        if await self._play_sentence(sentence, generation):
            self._is_playing = False
            self._is_paused = False
            self._current_sentence = None

    # Queue

    def add_to_queue(self, items: Iterable[Sentence | str] | Sentence | str) -> None:
        """Append sentences or plain texts to the queue. Current playback is not affected."""
        if isinstance(items, (str, Sentence)):
            items = [items]
        added: list[Sentence] = [item if isinstance(item, Sentence) else Sentence(text=item) for item in items]
        self._queue.extend(added)
        self._logger.debug("Queued %d sentence(s); queue length %d", len(added), len(self._queue))

    def add_text_to_queue(self, text: str) -> list[Sentence]:
        """Split a text into sentences and queue them.

        Returns:
            list[Sentence]: The sentences that were queued.
        """
        sentences: list[Sentence] = [Sentence(text=part) for part in self._segmenter(text)]
        self.add_to_queue(sentences)
        return sentences

    def clear_queue(self) -> None:
        """Empty the queue. A sentence that is being spoken finishes."""
        self._queue.clear()
        self._current_index = 0

    def play_queue(self, start_index: int = 0) -> None:
        """Play the queue from ``start_index``. No-op for an empty queue.

        Args:
            start_index (int): Index of the first sentence to play.
        """
        if not self._queue:
            self._logger.debug("play_queue ignored: queue is empty")
            return
        if not 0 <= start_index < len(self._queue):
            self._logger.warning("play_queue ignored: index %d outside queue of %d", start_index, len(self._queue))
            return
        self._stop_if_active()
        self._current_index = start_index
        self._start_traversal()

    def skip_to_next(self) -> None:
        if not self._queue or self._current_index >= len(self._queue) - 1:
            return
        self.stop()
        self._current_index += 1
        self._start_traversal()

    def skip_to_previous(self) -> None:
        if not self._queue or self._current_index <= 0:
            return
        self.stop()
        self._current_index = min(self._current_index, len(self._queue)) - 1
        self._start_traversal()

    def _start_traversal(self) -> None:
        self._task = asyncio.create_task(self._traverse(self._generation), name="tts_queue")

    async def _traverse(self, generation: int) -> None:
        while self._is_current(generation):
            if self._current_index >= len(self._queue):
                self._finish_queue()
                return

            sentence: Sentence = self._queue[self._current_index]
            if not await self._play_sentence(sentence, generation):
                return

            self._current_index += 1
            if self._current_index < len(self._queue):
                await asyncio.sleep(self._configuration.pause_between_sentences)
                await self._unpaused.wait()

    def _finish_queue(self) -> None:
        self._reset_state()
        self._logger.info("Queue completed")
        self._publish(TTSEvent.queue_completed())

    # Transport controls

    def pause(self) -> None:
        if not self._is_playing or self._is_paused:
            return
        self.active_engine.pause()
        self._is_paused = True
        self._unpaused.clear()
        self._publish(TTSEvent.paused())

    def resume(self) -> None:
        if not self._is_paused:
            return
        self.active_engine.resume()
        self._is_paused = False
        self._unpaused.set()
        self._publish(TTSEvent.resumed())

    def stop(self) -> None:
        """Stop playback, cancelling any pending delay or utterance. Always safe to call."""
        self._generation += 1
        self._speaking = False
        task: asyncio.Task[None] | None = self._task
        self._task = None
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()

        self.active_engine.stop()
        self._reset_state()
        self._publish(TTSEvent.stopped())

    async def wait_until_idle(self) -> None:
        """Wait until the current utterance or queue traversal has ended."""
        while (task := self._task) is not None and not task.done():
            await asyncio.wait({task})

    async def close(self) -> None:
        """Stop playback and release every engine."""
        self.stop()
        for engine in self._registry:
            try:
                await engine.close()
            except Exception as err:  # noqa: BLE001
                self._logger.error("Failed to close engine '%s': %s", engine.engine_name, err)

    # Dispatch

    async def _play_sentence(self, sentence: Sentence, generation: int) -> bool:
        """Speak one sentence and publish its events.

        Returns:
            bool: True if it completed and playback may continue.
        """
        engine: Interface = self.active_engine
        voice: Voice = self.select_voice(sentence)

        self._current_sentence = sentence
        self._is_playing = True
        self._is_paused = False
        self._unpaused.set()
        self._current_progress = 0.0
        self._publish(TTSEvent.started(sentence.text))
        if not self._is_current(generation):
            # a subscriber stopped or restarted playback
            return False

        engine.update_configuration(sentence.custom_config or self._configuration)
        engine.set_progress_callback(partial(self._on_progress, generation))
        loop: asyncio.AbstractEventLoop = asyncio.get_running_loop()
        started_at: float = loop.time()
        self._speaking = True
        try:
            await engine.speak(sentence.text, voice)
        except asyncio.CancelledError:
            task: asyncio.Task[object] | None = _current_task()
            if task is not None and task.cancelling():
                raise
            if self._is_current(generation):
                self._logger.info("Engine '%s' discarded the utterance", engine.engine_name)
                self._reset_state()
                self._publish(TTSEvent.stopped())
            return False
        except TTSExceptionError as err:
            return self._fail(err, generation)
        except Exception as err:  # noqa: BLE001
            error = TTSAudioConversionError(f"Engine '{engine.engine_name}' failed: {err}")
            error.__cause__ = err
            return self._fail(error, generation)
        finally:
            if self._is_current(generation):
                self._speaking = False

        if not self._is_current(generation):
            return False

        self._publish(TTSEvent.completed(sentence.text))
        if not self._is_current(generation):
            # a subscriber stopped or restarted playback
            return False
        self._current_progress = 1.0
        self._record_history(sentence, voice, loop.time() - started_at)
        return True

    def _fail(self, error: TTSExceptionError, generation: int) -> bool:
        if not self._is_current(generation):
            return False
        self._logger.error("Speech failed (%s): %s", error.kind, error)
        self._is_playing = False
        self._is_paused = False
        self._publish(TTSEvent.failed(error))
        return False

    def _on_progress(self, generation: int, progress: float) -> None:
        if not self._is_current(generation) or not self._speaking:
            return
        self._current_progress = progress
        self._publish(TTSEvent.progress_changed(progress))

    def _record_history(self, sentence: Sentence, voice: Voice, duration: float) -> None:
        self._store.add_to_playback_history(
            PlaybackHistoryItem(id=sentence.id, text=sentence.text, voice=voice, duration=round(duration, 3))
        )

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _task_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _stop_if_active(self) -> None:
        if self._is_playing or self._task_running():
            self.stop()

    def _reset_state(self) -> None:
        self._is_playing = False
        self._is_paused = False
        self._current_sentence = None
        self._current_progress = 0.0
        self._unpaused.set()

    def _publish(self, event: TTSEvent) -> None:
        self._logger.debug("Event: %s", event)
        self._bus.publish(event)

    # Voices and configuration

    def select_voice(self, sentence: Sentence) -> Voice:
        """Resolve the voice for a sentence.

        Priority: the sentence's own voice, the preferred voice of its configuration or else of the
        session, then with automatic language detection the stored preference for the detected
        language or the first catalog voice of that language, then the first available voice, then
        ``DEFAULT_VOICE``. Catalog picks favour voices the active engine lists.
        """
        if sentence.voice is not None:
            return sentence.voice

        configuration: Configuration = sentence.custom_config or self._configuration
        preferred_voice: Voice | None = configuration.preferred_voice or self._configuration.preferred_voice
        if preferred_voice is not None:
            return preferred_voice

        if configuration.auto_language_detection:
            language: LanguageTag | None = self._catalog.detect_language(sentence.text)
            if language is not None:
                preferred: Voice | None = self._store.get_preferred_voice(language)
                if preferred is not None:
                    return preferred
                voices: list[Voice] = self._for_active_engine(self._catalog.get_voices_for_language(language))
                if voices:
                    return voices[0]

        available: list[Voice] = self._for_active_engine(self._available_voices)
        if available:
            return available[0]
        return DEFAULT_VOICE

    def _for_active_engine(self, voices: list[Voice]) -> list[Voice]:
        """Order voices so those the active engine lists come first, keeping catalog order otherwise."""
        engine: Interface | None = self._registry.active
        if engine is None:
            return voices
        supported: set[str] = {voice.id for voice in engine.available_voices()}
        return sorted(voices, key=lambda voice: voice.id not in supported)

    def update_configuration(self, configuration: Configuration) -> None:
        """Replace the configuration and persist it. Out-of-range values are clamped."""
        self._configuration = self._store.validate(configuration)
        self._store.save(self._configuration)
        self._logger.info("Configuration updated: %s", self._configuration)

    def set_preferred_voice(self, voice: Voice | None) -> None:
        """Set the voice used for every sentence without its own voice, or clear it with None."""
        self._configuration.preferred_voice = voice
        self._store.save(self._configuration)

    def set_preferred_voice_for_language(self, voice: Voice, language: str) -> None:
        """Remember a voice for sentences detected as ``language``."""
        self._store.set_preferred_voice(voice, language)

    def get_voices_for_language(self, language: str) -> list[Voice]:
        return self._catalog.get_voices_for_language(language)

    def detect_language(self, text: str) -> LanguageTag | None:
        return self._catalog.detect_language(text)

    # Engines

    def register_engine(self, engine: Interface) -> None:
        self._registry.register(engine)

    def switch_engine(self, selector: str | Interface) -> bool:
        """Make another engine active, stopping playback first if it is running.

        Returns:
            bool: True if the active engine changed.
        """
        target: Interface | None = self._registry.get(selector) if isinstance(selector, str) else selector
        if target is not None and target in self._registry and target is not self._registry.active:
            self._stop_if_active()
        return self._registry.set_active(selector)
