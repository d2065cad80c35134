"""Configuration file loader and validator.

Reads the INI application settings into ``Config``, fills missing credentials from the
environment, applies command-line overrides and validates the result.
"""

from __future__ import annotations

import ast
import configparser
import logging
import os
from configparser import ConfigParser
from dataclasses import fields
from pathlib import Path
from typing import Any, Final

from models.config_models import Config
from utils.logger_utils import LoggerUtils

__all__: list[str] = [
    "ALLOWED_ENGINES",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigLoaderError",
    "ConfigTypeError",
    "ConfigValueError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

ALLOWED_ENGINES: Final[list[str]] = ["local", "openai", "azure", "gtts"]

LOG_LEVELS: Final[list[str]] = ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]

# Credentials read from the environment when the INI leaves them empty
ENVIRONMENT_FALLBACKS: Final[dict[tuple[str, str], str]] = {
    ("OPENAI", "API_KEY"): "OPENAI_API_KEY",
    ("AZURE", "SUBSCRIPTION_KEY"): "AZURE_SPEECH_KEY",
}

# Sections whose TIMEOUT bounds a network request
TIMEOUT_SECTIONS: Final[tuple[str, ...]] = ("OPENAI", "AZURE", "GTTS")


class ConfigLoaderError(Exception):
    """An error occurred while processing the configuration file."""


class ConfigFileNotFoundError(ConfigLoaderError):
    """The specified configuration file does not exist."""


class ConfigFormatError(ConfigLoaderError):
    """The configuration file is not formatted correctly."""


class ConfigValueError(ConfigFormatError):
    """The configuration file contains an invalid value."""


class ConfigTypeError(ConfigFormatError):
    """The configuration file contains an invalid type."""


class ConfigLoader:
    """Builds the application settings from an optional INI file.

    Sections and keys mirror the ``Config`` dataclasses. Anything the file leaves out keeps its
    built-in default, unknown sections and keys are ignored.

    Args:
        config_filename (str | None): INI file name to load. None uses the built-in defaults.
        script_name (str): Executing script name, used in error messaging.
        engine (str | None): Optional override for the default engine.
        debug (bool): Optional override enabling debug logging.

    Raises:
        ConfigFileNotFoundError: If the configuration file does not exist.
        ConfigFormatError: If the file cannot be parsed or contains invalid values/types.
    """

    def __init__(
        self,
        *,
        config_filename: str | None,
        script_name: str,
        **args,
    ) -> None:
        parser: ConfigParser = self._read(config_filename, script_name)

        self.config = Config()
        self.config.GENERAL.SCRIPT_NAME = script_name
        self._apply_file(parser)
        self._apply_environment()
        # Apply command-line argument overrides
        if args.get("engine") is not None:
            self.config.ENGINE.DEFAULT = args["engine"]
        if args.get("debug", False):
            self.config.GENERAL.DEBUG = True
            self.config.GENERAL.LOG_LEVEL = "DEBUG"
        self._validate_settings()

    @staticmethod
    def _read(config_filename: str | None, script_name: str) -> ConfigParser:
        msg: str
        parser: ConfigParser = ConfigParser()
        if config_filename is None:
            logger.debug("No configuration file given; using built-in defaults")
            return parser

        config_path = Path(config_filename)
        if not config_path.exists():
            msg = (
                f"Configuration file '{config_filename}' not found. "
                f"Please create '{config_filename}' in the same directory as '{script_name}'."
            )
            raise ConfigFileNotFoundError(msg)

        try:
            parser.read(config_path, encoding="utf-8")
        except configparser.Error as err:
            msg = f"Failed to parse configuration file '{config_filename}': {err}"
            raise ConfigFormatError(msg) from None
        logger.debug("Configuration file '%s' read", config_filename)
        return parser

    def _apply_file(self, parser: ConfigParser) -> None:
        """Copy every value the file defines onto the matching ``Config`` field.

        Raises:
            ConfigFormatError: If a value cannot be converted to the field's type.
        """
        converter = _SettingConverter(parser)
        for section_field in fields(self.config):
            if not parser.has_section(section_field.name):
                logger.debug("Skipping undefined section: '%s'", section_field.name)
                continue

            section: Any = getattr(self.config, section_field.name)
            for key_field in fields(section):
                if not parser.has_option(section_field.name, key_field.name):
                    logger.debug("Skipping undefined setting: '%s.%s'", section_field.name, key_field.name)
                    continue
                current: object = getattr(section, key_field.name)
                setattr(section, key_field.name, converter.convert(section_field.name, key_field.name, current))

    def _apply_environment(self) -> None:
        for (section_name, key_name), variable in ENVIRONMENT_FALLBACKS.items():
            section = getattr(self.config, section_name)
            if getattr(section, key_name):
                continue
            value: str | None = os.environ.get(variable)
            if value:
                setattr(section, key_name, value)
                logger.debug("'%s.%s' taken from the environment variable '%s'", section_name, key_name, variable)

    def _validate_settings(self) -> None:
        """Validate engine selection, timeouts and logging settings.

        Raises:
            ConfigFormatError: If validation fails for any setting.
        """
        try:
            self._validate_enabled_engines()
            self._validate_default_engine()
            self._validate_timeouts()
            self._validate_log_level()
        except (AttributeError, TypeError, ValueError) as err:
            msg: str = f"Invalid configuration value: {err}"
            raise ConfigFormatError(msg) from None

    def _validate_enabled_engines(self) -> None:
        """Normalize ``ENGINE.ENABLED`` to a list of known, lower-case engine names.

        Unknown names are logged and dropped, duplicates collapse and a single string becomes a
        one-element list.

        Raises:
            ConfigTypeError: If the configured value is neither list nor str.
        """
        value: object = self.config.ENGINE.ENABLED
        if not isinstance(value, (list, str)):
            msg: str = f"Unsupported type used for 'ENGINE.ENABLED': {type(value)}"
            raise ConfigTypeError(msg)

        names: list[str] = [str(name).lower() for name in (value if isinstance(value, list) else [value])]
        for name in names:
            if name not in ALLOWED_ENGINES:
                logger.warning("Unknown value '%s' is set for 'ENGINE.ENABLED'", name)
        self.config.ENGINE.ENABLED = list(dict.fromkeys(name for name in names if name in ALLOWED_ENGINES))

    def _validate_default_engine(self) -> None:
        """The default engine must be a known engine and is always enabled.

        Raises:
            ConfigValueError: If the default engine is unknown.
        """
        default: str = str(self.config.ENGINE.DEFAULT).lower()
        if default not in ALLOWED_ENGINES:
            msg: str = f"Unsupported engine used for 'ENGINE.DEFAULT': {self.config.ENGINE.DEFAULT}"
            raise ConfigValueError(msg)
        self.config.ENGINE.DEFAULT = default
        if default not in self.config.ENGINE.ENABLED:
            logger.info("Default engine '%s' was not listed in 'ENGINE.ENABLED'; enabling it", default)
            self.config.ENGINE.ENABLED.insert(0, default)

    def _validate_timeouts(self) -> None:
        """Raises ConfigValueError for a request timeout that is not a positive number of seconds."""
        for section_name in TIMEOUT_SECTIONS:
            timeout: float = getattr(self.config, section_name).TIMEOUT
            if timeout <= 0:
                msg: str = f"'{section_name}.TIMEOUT' must be positive: {timeout}"
                raise ConfigValueError(msg)

    def _validate_log_level(self) -> None:
        """Raises ConfigValueError if the log level is not a standard level name."""
        level: str = str(self.config.GENERAL.LOG_LEVEL).upper()
        if level not in LOG_LEVELS:
            msg: str = f"Unsupported log level used for 'GENERAL.LOG_LEVEL': {self.config.GENERAL.LOG_LEVEL}"
            raise ConfigValueError(msg)
        self.config.GENERAL.LOG_LEVEL = level


class _SettingConverter:
    """Turns raw INI strings into values of the type the ``Config`` default already has.

    Booleans use ``ConfigParser.getboolean``. Numbers may be written with or without quotes.
    Everything else is read as a Python literal, so strings must be quoted and lists bracketed.
    """

    def __init__(self, parser: ConfigParser) -> None:
        self.parser: ConfigParser = parser

    def convert(self, section_name: str, key_name: str, current: object) -> Any:
        """Read ``section_name.key_name`` as the type of ``current``.

        Raises:
            ConfigValueError: If the text is not a valid value of the expected type.
            ConfigFormatError: If a literal is syntactically broken.
        """
        setting: str = f"{section_name}.{key_name}"
        raw: str = self.parser.get(section_name, key_name)
        try:
            match current:
                case bool():
                    return self.parser.getboolean(section_name, key_name)
                case int():
                    return int(float(_unquote(raw)))
                case float():
                    return float(_unquote(raw))
                case _:
                    return ast.literal_eval(raw)
        except ValueError as err:
            msg = f"Invalid value for {setting}: {raw}"
            raise ConfigValueError(msg) from err
        except SyntaxError as err:
            msg = f"Invalid literal for {setting}: {raw}"
            raise ConfigFormatError(msg) from err


def _unquote(value: str) -> str:
    value = value.strip()
    for char in ("'", '"'):
        value = value.removeprefix(char).removesuffix(char)
    return value
