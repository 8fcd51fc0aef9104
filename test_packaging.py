from __future__ import annotations

from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

ROOT = Path(__file__).resolve().parent


def _pyproject() -> dict:
    return tomllib.loads((ROOT / "pyproject.toml").read_text(encoding="utf-8"))


def test_readme_is_not_a_design_document():
    readme = _pyproject()["project"].get("readme")
    if readme is not None:
        assert (ROOT / readme).is_file()
        assert readme not in {"SPEC_FULL.md", "DESIGN.md"}


def test_declared_modules_exist():
    for module in _pyproject()["tool"]["setuptools"]["py-modules"]:
        assert (ROOT / f"{module}.py").is_file(), module
