"""Synthesized audio cache package.

Keeps recently synthesized audio in memory so repeated requests skip the remote service.
"""

from __future__ import annotations

from core.cache.audio_cache import AudioCache

__all__: list[str] = ["AudioCache"]
