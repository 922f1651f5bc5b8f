from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class DiscoveryResult:
    """Project directories found under a root, in the order they are processed."""

    root: Path
    project_dirs: Tuple[Path, ...] = ()

    def to_json_dict(self) -> Dict[str, Any]:
        return {"root": str(self.root), "project_dirs": [str(p) for p in self.project_dirs]}


@dataclass(frozen=True)
class BootstrapContext:
    """State produced by the bootstrap run and handed to later steps explicitly."""

    discovery: DiscoveryResult
    # Checkouts usable by the gradle integration tests.
    gradle_integration_dirs: Tuple[Path, ...] = field(default_factory=tuple)

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            "discovery": self.discovery.to_json_dict(),
            "gradle_integration_dirs": [str(p) for p in self.gradle_integration_dirs],
        }
