"""Base directory for relative data paths (database, custom catalog)."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path


@lru_cache(maxsize=1)
def get_project_root() -> Path:
    """Return the source checkout root, or the working directory when installed.

    A checkout is recognized by a pyproject.toml next to the 'agentforge'
    package; an installed copy in site-packages has none.
    """
    # project_root.py -> config/ -> agentforge/ -> checkout/
    checkout = Path(__file__).resolve().parents[2]
    if (checkout / "pyproject.toml").is_file() and (checkout / "agentforge").is_dir():
        return checkout
    return Path.cwd()


def resolve_project_path(relative_path: str | Path) -> Path:
    """Resolve a configured path; absolute paths are returned unchanged.

    Example:
        >>> resolve_project_path("data/agentforge.db")
        PosixPath('/srv/agentforge/data/agentforge.db')
    """
    path = Path(relative_path).expanduser()
    if path.is_absolute():
        return path
    return get_project_root() / path


__all__ = ["get_project_root", "resolve_project_path"]
