"""Load ``.env`` files into the process environment once per interpreter."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Tuple

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]

_loaded: Tuple[Path, ...] | None = None


def dotenv_candidates() -> List[Path]:
    """Return the dotenv paths to try, highest precedence first.

    Paths listed in ``PLAYBACK_ENV_FILE`` (``os.pathsep`` separated) come
    first, then ``.env``, ``.env.<PLAYBACK_ENV>`` and ``.env.local`` from the
    project root. Variables that are already set are never overridden, so a
    value from an earlier file wins over a later one.
    """

    explicit = [
        Path(value.strip()).expanduser()
        for value in os.environ.get("PLAYBACK_ENV_FILE", "").split(os.pathsep)
        if value.strip()
    ]
    names = [".env"]
    profile = os.environ.get("PLAYBACK_ENV")
    if profile:
        names.append(f".env.{profile}")
    names.append(".env.local")

    candidates: List[Path] = []
    for path in explicit + [PROJECT_ROOT / name for name in names]:
        resolved = path.resolve()
        if resolved not in candidates:
            candidates.append(resolved)
    return candidates


def load_environment(*, force: bool = False) -> Tuple[Path, ...]:
    """Apply every existing dotenv candidate and return the files loaded."""

    global _loaded
    if _loaded is None or force:
        _loaded = tuple(
            path
            for path in dotenv_candidates()
            if path.is_file() and load_dotenv(path, override=False)
        )
    return _loaded


__all__ = ["dotenv_candidates", "load_environment"]
