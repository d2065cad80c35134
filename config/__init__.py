"""Configuration loading and persistence for speechqueue.

This package loads the application settings from the INI file and persists the playback
configuration, voice preferences and playback history.
"""

from config.loader import (
    ConfigFileNotFoundError,
    ConfigFormatError,
    ConfigLoader,
    ConfigLoaderError,
    ConfigTypeError,
    ConfigValueError,
)
from config.store import ConfigurationStore, FileKeyValueStore, KeyValueStore, MemoryKeyValueStore

__all__: list[str] = [
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigLoaderError",
    "ConfigTypeError",
    "ConfigValueError",
    "ConfigurationStore",
    "FileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
]
