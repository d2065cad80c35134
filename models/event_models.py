"""Playback lifecycle events published by the playback session."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

__all__: list[str] = ["TTSEvent", "TTSEventType"]


class TTSEventType(StrEnum):
    STARTED = "started"
    PAUSED = "paused"
    RESUMED = "resumed"
    STOPPED = "stopped"
    COMPLETED = "completed"
    ERROR = "error"
    QUEUE_COMPLETED = "queue_completed"
    PROGRESS_CHANGED = "progress_changed"


@dataclass(frozen=True)
class TTSEvent:
    """One observation of the playback session.

    Attributes:
        type (TTSEventType): Kind of event.
        text (str | None): Sentence text for ``started`` and ``completed``.
        error (BaseException | None): Cause for ``error``.
        progress (float | None): Fraction 0.0-1.0 for ``progress_changed``.
    """

    type: TTSEventType
    text: str | None = None
    error: BaseException | None = None
    progress: float | None = None

    def __str__(self) -> str:
        if self.text is not None:
            return f"{self.type}({self.text!r})"
        if self.error is not None:
            return f"{self.type}({self.error})"
        if self.progress is not None:
            return f"{self.type}({self.progress:.2f})"
        return str(self.type)

    @classmethod
    def started(cls, text: str) -> TTSEvent:
        return cls(TTSEventType.STARTED, text=text)

    @classmethod
    def completed(cls, text: str) -> TTSEvent:
        return cls(TTSEventType.COMPLETED, text=text)

    @classmethod
    def failed(cls, error: BaseException) -> TTSEvent:
        return cls(TTSEventType.ERROR, error=error)

    @classmethod
    def progress_changed(cls, progress: float) -> TTSEvent:
        return cls(TTSEventType.PROGRESS_CHANGED, progress=progress)

    @classmethod
    def paused(cls) -> TTSEvent:
        return cls(TTSEventType.PAUSED)

    @classmethod
    def resumed(cls) -> TTSEvent:
        return cls(TTSEventType.RESUMED)

    @classmethod
    def stopped(cls) -> TTSEvent:
        return cls(TTSEventType.STOPPED)

    @classmethod
    def queue_completed(cls) -> TTSEvent:
        return cls(TTSEventType.QUEUE_COMPLETED)
