from __future__ import annotations

from pathlib import Path

import pytest

from utils.file_utils import FileUtils, InvalidFileTypeError


def test_resolve_path_expands_variables(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SPEECH_HOME", str(tmp_path))

    assert FileUtils.resolve_path("$SPEECH_HOME/state") == (tmp_path / "state").resolve()


def test_resolve_path_relative_to_cwd(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)

    assert FileUtils.resolve_path("data") == (tmp_path / "data").resolve()
    with pytest.raises(FileNotFoundError):
        FileUtils.resolve_path("data", strict=True)


def test_write_bytes_atomic(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "value.json"

    FileUtils.write_bytes_atomic(target, b"one")
    FileUtils.write_bytes_atomic(target, b"two")

    assert target.read_bytes() == b"two"
    assert [path.name for path in target.parent.iterdir()] == ["value.json"]


def test_write_bytes_atomic_rejects_directory(tmp_path: Path) -> None:
    with pytest.raises(InvalidFileTypeError):
        FileUtils.write_bytes_atomic(tmp_path, b"data")


def test_create_temp_filename(tmp_path: Path) -> None:
    first = FileUtils.create_temp_filename(tmp_path)
    second = FileUtils.create_temp_filename(tmp_path, suffix="mp3")

    assert first.parent == tmp_path
    assert first.suffix == ".wav"
    assert second.suffix == ".mp3"
    assert first != second
    assert not first.exists()
