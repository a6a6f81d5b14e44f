"""Packaging: subpackages without __init__.py are installed along with the package."""

from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]


def test_namespace_subpackages_are_discovered():
    tomllib = pytest.importorskip("tomllib")
    config = tomllib.loads((ROOT / "pyproject.toml").read_text())
    find = config["tool"]["setuptools"]["packages"]["find"]
    assert find["where"] == ["backend"]
    assert find["include"] == ["reminder_service*"]
    assert find["namespaces"] is True
    assert "tzdata" in config["project"]["dependencies"]
