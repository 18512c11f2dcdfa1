"""arcanepaths package: mini-game round engines and progress/rewards tracking."""

from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

__all__ = ["__version__"]


def _version_from_pyproject() -> str | None:
    """Best-effort version lookup from a local pyproject.toml for source checkouts."""
    for base in Path(__file__).resolve().parents:
        pyproject = base / "pyproject.toml"
        if not pyproject.exists():
            continue
        text = pyproject.read_text(encoding="utf-8")
        in_project = False
        name_matches = False
        found: str | None = None
        for line in text.splitlines():
            stripped = line.strip()
            if stripped.startswith("[") and stripped.endswith("]"):
                in_project = stripped == "[project]"
                continue
            if not in_project:
                continue
            if re.match(r'^name\s*=\s*"arcanepaths"\s*$', stripped):
                name_matches = True
            match = re.match(r'^version\s*=\s*"([^"]+)"\s*$', stripped)
            if match:
                found = match.group(1)
        if name_matches and found is not None:
            return found
    return None


_project_version = _version_from_pyproject()
if _project_version is not None:
    __version__ = _project_version
else:
    try:
        __version__ = version("arcanepaths")
    except PackageNotFoundError:
        __version__ = "0+unknown"
