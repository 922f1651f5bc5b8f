from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Sequence, Set

from .fingerprints import TrackedInputSet

_EXCLUDED_DIR_NAMES: Set[str] = {"target", ".bloop", ".bsp", ".git", ".idea", ".metals"}

BUILD_DEFINITION_SUFFIXES = (".sbt", ".scala")
SCALA_SOURCE_SUFFIXES = (".scala",)


def collect_files(
    root: Path,
    suffixes: Sequence[str],
    *,
    excluded_dir_names: Iterable[str] = _EXCLUDED_DIR_NAMES,
) -> List[Path]:
    """All files under `root` ending in one of `suffixes`, in stable order.

    Build output directories are skipped so generated files never invalidate
    the inputs that produced them. A missing root yields no files. A
    directory that cannot be listed is returned as a member itself, so
    fingerprinting the set fails with a HashingError for its owner only.
    """
    excluded = set(excluded_dir_names)
    found: List[Path] = []
    if not root.exists() or not root.is_dir():
        return found

    stack = [root]
    while stack:
        cur = stack.pop()
        try:
            children = sorted(cur.iterdir())
        except OSError:
            found.append(cur)
            continue
        for child in children:
            if child.is_dir():
                if child.name in excluded:
                    continue
                stack.append(child)
            elif child.is_file() and child.name.endswith(tuple(suffixes)):
                found.append(child)
    return sorted({p.resolve() for p in found}, key=lambda p: str(p))


def project_input_files(project_dir: Path) -> TrackedInputSet:
    """Build definition files (`*.sbt`, `*.scala`) of one test project."""
    return TrackedInputSet.of(collect_files(project_dir, BUILD_DEFINITION_SUFFIXES))


def plugin_source_files(plugin_source_dir: Path) -> TrackedInputSet:
    """Scala sources of the build plugin shared by every generated project."""
    return TrackedInputSet.of(collect_files(plugin_source_dir, SCALA_SOURCE_SUFFIXES))
