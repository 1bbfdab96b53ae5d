"""Tests for the project metadata."""

from __future__ import annotations

import tomllib
from pathlib import Path

import dockit

PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


def project_table() -> dict:
    with PYPROJECT.open("rb") as f:
        return tomllib.load(f)["project"]


class TestMetadata:
    def test_version_matches_package(self) -> None:
        assert project_table()["version"] == dockit.__version__

    def test_readme_points_at_a_readme(self) -> None:
        readme = project_table().get("readme")
        assert readme is None or (PYPROJECT.parent / readme).name.lower().startswith("readme")

    def test_entry_point(self) -> None:
        assert project_table()["scripts"]["dockit"] == "dockit.cli:main"
