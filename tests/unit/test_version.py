"""Unit coverage for the project version helper."""

from __future__ import annotations

from importlib import metadata
from pathlib import Path

import pytest

from forfettario.backend.version import (
    PACKAGE_NAME,
    get_project_version,
    read_version_from_pyproject,
)

PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def test_get_project_version_prefers_installed_metadata(monkeypatch) -> None:
    get_project_version.cache_clear()  # type: ignore[attr-defined]
    requested: list[str] = []

    def fake_version(package: str) -> str:
        requested.append(package)
        return "9.9.9"

    monkeypatch.setattr(metadata, "version", fake_version)

    assert get_project_version() == "9.9.9"
    assert requested == [PACKAGE_NAME]
    get_project_version.cache_clear()  # type: ignore[attr-defined]


def test_get_project_version_falls_back_to_pyproject(monkeypatch) -> None:
    get_project_version.cache_clear()  # type: ignore[attr-defined]

    def raise_package_not_found(_: str) -> str:
        raise metadata.PackageNotFoundError

    monkeypatch.setattr(metadata, "version", raise_package_not_found)

    assert get_project_version() == read_version_from_pyproject(PYPROJECT)
    get_project_version.cache_clear()  # type: ignore[attr-defined]


def test_read_version_only_looks_at_project_table(tmp_path: Path) -> None:
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(
        '[tool.other]\nversion = "0.0.1"\n\n[project]\nname = "x"\nversion = "1.2.3"\n',
        encoding="utf-8",
    )

    assert read_version_from_pyproject(pyproject) == "1.2.3"


def test_read_version_reports_missing_metadata(tmp_path: Path) -> None:
    with pytest.raises(RuntimeError):
        read_version_from_pyproject(tmp_path / "missing.toml")

    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text('[project]\nname = "x"\n', encoding="utf-8")
    with pytest.raises(RuntimeError):
        read_version_from_pyproject(pyproject)


def test_repository_pyproject_declares_version() -> None:
    assert read_version_from_pyproject(PYPROJECT) == "0.4.0"
