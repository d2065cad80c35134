"""Utility modules for speechqueue.

This package provides utility functions for logging, file handling, string manipulation and
language handling. Text segmentation lives in ``utils.tts_utils``, which depends on the models
and is imported directly.
"""

from utils.file_utils import FileUtils
from utils.language_utils import LanguageUtils
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

__all__: list[str] = ["FileUtils", "LanguageUtils", "LoggerUtils", "StringUtils"]
