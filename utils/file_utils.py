from __future__ import annotations

import os
import tempfile
import uuid
from pathlib import Path

__all__: list[str] = ["FileUtils", "FileUtilsError", "InvalidFileTypeError"]


class FileUtils:
    """Path helpers shared by the configuration layer and the on-device engine."""

    @staticmethod
    def resolve_path(path: str | Path, *, strict: bool = False) -> Path:
        """Convert a user-supplied path into an absolute path.

        Environment variables and ``~`` are expanded; relative paths are taken from the current
        working directory.

        Args:
            path (str | Path): The input path (e.g., "~/speech/$PROFILE/state").
            strict (bool): Raise if the path does not exist.

        Returns:
            Path: The absolute path.
        """
        expanded: Path = Path(os.path.expandvars(str(path))).expanduser()
        if not expanded.is_absolute():
            expanded = Path.cwd() / expanded
        return expanded.resolve(strict=strict)

    @staticmethod
    def write_bytes_atomic(file_path: Path, data: bytes) -> None:
        """Write a file so readers never observe a partially written state.

        The data goes to a sibling temporary file first and is moved into place with
        ``os.replace``.

        Raises:
            InvalidFileTypeError: If the target exists and is a directory.
            OSError: If writing or renaming fails.
        """
        if file_path.is_dir():
            msg = f"Invalid file type (directory): {file_path}"
            raise InvalidFileTypeError(msg)

        file_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp")
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as fp:
                fp.write(data)
            tmp_path.replace(file_path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

    @staticmethod
    def create_temp_filename(directory: Path | None = None, *, suffix: str = "wav") -> Path:
        """Return a unique, not yet existing file name for rendered audio."""
        base: Path = directory if directory is not None else Path(tempfile.gettempdir())
        return base / f"speechqueue_{uuid.uuid4().hex}.{suffix}"


class FileUtilsError(Exception):
    """Base exception for FileUtils errors."""


class InvalidFileTypeError(FileUtilsError):
    """The path points at something that is not a regular file."""
