"""Unit tests for SpeechQueue.

This package contains test modules for the playback session, the engines and their support code.
Tests use pytest with asyncio support and replace audio devices and network calls via monkeypatch.
"""
