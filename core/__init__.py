"""Core components of speechqueue.

``core.tts`` holds the playback session, the engine contract and the engines; ``core.cache``
keeps synthesized audio.
"""
