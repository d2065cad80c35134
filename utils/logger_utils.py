from __future__ import annotations

import logging
import sys
import warnings
from logging import Formatter, NullHandler, StreamHandler
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING, ClassVar, Final, Literal, Self, TextIO

if TYPE_CHECKING:
    from pathlib import Path

__all__: list[str] = ["LoggerUtils"]

type LevelType = Literal[
    "NOTSET",
    "DEBUG",
    "INFO",
    "WARNING",
    "ERROR",
    "CRITICAL",
]

_LOG_FILE_SIZE: Final[int] = 1024 * 1024  # 1MB
_LOG_BACKUP_COUNT: Final[int] = 3

DEFAULT_LOG_LEVEL: Final[int] = logging.INFO
DEFAULT_NAMESPACE: Final[str] = "SpeechQueue"

_FILE_FORMAT: Final[str] = "%(asctime)s %(levelname)-8s %(thread)5d %(lineno)4d %(name)-44s\t%(funcName)s\t%(message)s"


class LoggerUtils:
    """Process-wide logging setup for the speech queue.

    Every module asks for its logger through ``get_logger(__name__)`` so all records end up below one
    namespace logger. Constructing the class attaches a console handler (WARNING and above) and,
    when a file name is given, a rotating UTF-8 file handler that records everything from DEBUG up.
    Only the first construction configures anything; later ones return the same instance untouched.
    """

    _LOGGER_NAMESPACE: ClassVar[str] = DEFAULT_NAMESPACE
    _configured: ClassVar[bool] = False
    _instance: ClassVar[Self | None] = None

    def __new__(cls, *args, **kwargs) -> Self:
        _ = args, kwargs
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, filename: str | Path = "", *, quiet_console: bool = False) -> None:
        """Attach the handlers to the namespace logger.

        Args:
            filename (str | Path): Absolute path of the log file. Empty disables file logging.
            quiet_console (bool): Install a NullHandler instead of writing to stderr.
        """
        if LoggerUtils._configured:
            return

        self.root_logger: logging.Logger = logging.getLogger(self._LOGGER_NAMESPACE)
        # handlers filter on their own level, so the logger itself stays permissive
        self.root_logger.setLevel(DEFAULT_LOG_LEVEL)

        if quiet_console or sys.stderr is None:
            self.root_logger.addHandler(NullHandler())
        else:
            console_handler: StreamHandler[TextIO] = StreamHandler(sys.stderr)
            console_handler.setLevel(logging.WARNING)
            console_handler.setFormatter(Formatter("%(levelname)s: %(message)s"))
            self.root_logger.addHandler(console_handler)

        if str(filename).strip():
            self._file_logging(str(filename))

        warnings.showwarning = self.warning_to_log
        LoggerUtils._configured = True

    def warning_to_log(
        self,
        message: Warning | str,
        category: type[Warning],
        filename: str,
        lineno: int,
        file: TextIO | None = None,
        line: str | None = None,
    ) -> None:
        """Route ``warnings.warn`` output into the namespace logger.

        Matches the signature expected by ``warnings.showwarning``.
        """
        _ = file, line
        self.root_logger.warning("%s:%d: %s: %s", filename, lineno, category.__name__, message)

    def _file_logging(self, filename: str) -> None:
        if any(isinstance(h, RotatingFileHandler) for h in self.root_logger.handlers):
            self.root_logger.warning("File logging is already configured.")
            return

        try:
            file_handler = RotatingFileHandler(
                filename=filename,
                maxBytes=_LOG_FILE_SIZE,
                backupCount=_LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
        except (FileNotFoundError, PermissionError):
            self.root_logger.error("Cannot open log file '%s'. Logging to the file is not performed.", filename)
            return

        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(Formatter(_FILE_FORMAT))
        self.root_logger.addHandler(file_handler)

    def set_level(self, level: LevelType | str) -> None:
        """Set the namespace logger level, falling back to INFO for unknown names."""
        level_map: dict[str, int] = logging.getLevelNamesMapping()
        try:
            self.root_logger.setLevel(level_map[level.upper()])
        except KeyError:
            self.root_logger.setLevel(DEFAULT_LOG_LEVEL)
            self.root_logger.warning("Unknown logging level '%s' specified. Logging level set to 'INFO'.", level)

    @staticmethod
    def get_logger(name: str | None = None) -> logging.Logger:
        """Return a logger below the namespace logger.

        Args:
            name (str | None): Dotted module name. None returns the namespace logger itself.

        Returns:
            logging.Logger: The logger instance.
        """
        namespace: str = LoggerUtils._LOGGER_NAMESPACE
        if namespace:
            return logging.getLogger(f"{namespace}.{name}" if name else namespace)
        return logging.getLogger(name or None)
