"""Course player with sequential unlocks, reward points, and flashcard recall."""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

__all__ = ["__version__"]

# src/courseplayer/__init__.py -> repository root
_PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def _checkout_version() -> str | None:
    """Version declared by the source checkout, if running from one."""
    if not _PYPROJECT.is_file():
        return None
    with _PYPROJECT.open("rb") as handle:
        project = tomllib.load(handle).get("project", {})
    if project.get("name") != "courseplayer":
        return None
    return project.get("version")


def _resolve_version() -> str:
    checkout = _checkout_version()
    if checkout:
        return checkout
    try:
        return version("courseplayer")
    except PackageNotFoundError:
        return "0+unknown"


__version__ = _resolve_version()
