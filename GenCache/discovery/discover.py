from __future__ import annotations

from pathlib import Path
from typing import Set

from ..core.errors import GenerationError
from .models import DiscoveryResult

_IGNORED_DIR_NAMES: Set[str] = {"target", ".git", ".idea"}


class DiscoveryError(GenerationError):
    kind = "discovery"


def discover_project_dirs(root: Path) -> DiscoveryResult:
    """Immediate sub-directories of `root`, sorted by name.

    Each one is an independent test project whose build configuration is
    generated by its own job.
    """
    root = Path(root).expanduser().resolve()
    if not root.is_dir():
        raise DiscoveryError(f"Project root {root} does not exist or is not a directory")
    dirs = sorted(
        (p for p in root.iterdir() if p.is_dir() and p.name not in _IGNORED_DIR_NAMES and not p.name.startswith(".")),
        key=lambda p: p.name,
    )
    return DiscoveryResult(root=root, project_dirs=tuple(dirs))
