from __future__ import annotations

import hashlib
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Union

from ..core.errors import HashingError

PathLike = Union[str, os.PathLike]
Fingerprint = str

# Digest recorded for a tracked path that does not exist.
ABSENT = "<absent>"

_FORMAT_HEADER = b"gencache-fingerprint-v1\n"
_CHUNK_SIZE = 1024 * 1024


def canonical_path(path: PathLike) -> Path:
    return Path(path).expanduser().resolve()


@dataclass(frozen=True)
class TrackedInputSet:
    """Files whose content decides whether a job must be regenerated.

    Membership is a set: enumeration order never matters. Paths listed in
    `required` must exist when the set is fingerprinted.
    """

    paths: FrozenSet[Path] = field(default_factory=frozenset)
    required: FrozenSet[Path] = field(default_factory=frozenset)

    @staticmethod
    def of(paths: Iterable[PathLike] = (), *, required: Iterable[PathLike] = ()) -> "TrackedInputSet":
        req = frozenset(canonical_path(p) for p in required)
        members = frozenset(canonical_path(p) for p in paths) | req
        return TrackedInputSet(paths=members, required=req)

    def union(self, other: "TrackedInputSet") -> "TrackedInputSet":
        return TrackedInputSet(paths=self.paths | other.paths, required=self.required | other.required)

    def sorted_paths(self) -> List[Path]:
        return sorted(self.paths, key=lambda p: str(p))

    def __iter__(self) -> Iterator[Path]:
        return iter(self.sorted_paths())

    def __len__(self) -> int:
        return len(self.paths)


@dataclass(frozen=True)
class FileFingerprint:
    path: str
    sha256: Optional[str]

    @property
    def exists(self) -> bool:
        return self.sha256 is not None

    def to_json_dict(self) -> Dict[str, Any]:
        return asdict(self)


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def fingerprint_file(path: Path, *, required: bool = False) -> FileFingerprint:
    try:
        if not path.exists():
            if required:
                raise HashingError(f"Required input {path} does not exist", path=path)
            return FileFingerprint(path=str(path), sha256=None)
        if not path.is_file():
            raise HashingError(f"Tracked input {path} is not a regular file", path=path)
        return FileFingerprint(path=str(path), sha256=sha256_file(path))
    except FileNotFoundError:
        # Removed between the existence check and the read.
        if required:
            raise HashingError(f"Required input {path} does not exist", path=path)
        return FileFingerprint(path=str(path), sha256=None)
    except OSError as exc:
        raise HashingError(f"Cannot read tracked input {path}: {exc}", path=path) from exc


def snapshot_inputs(inputs: TrackedInputSet) -> Dict[str, FileFingerprint]:
    return {str(p): fingerprint_file(p, required=p in inputs.required) for p in inputs.sorted_paths()}


def fingerprint_snapshot(snapshot: Mapping[str, FileFingerprint]) -> Fingerprint:
    h = hashlib.sha256(_FORMAT_HEADER)
    for path in sorted(snapshot):
        digest = snapshot[path].sha256 or ABSENT
        # fsencode keeps undecodable POSIX file names hashable
        h.update(os.fsencode(path))
        h.update(b"\0")
        h.update(digest.encode("ascii"))
        h.update(b"\n")
    return h.hexdigest()


def fingerprint_inputs(inputs: TrackedInputSet) -> Fingerprint:
    """Deterministic digest over the membership and content of `inputs`."""
    return fingerprint_snapshot(snapshot_inputs(inputs))


EMPTY_FINGERPRINT: Fingerprint = fingerprint_snapshot({})


def changed_inputs(
    previous: Mapping[str, Optional[str]],
    current: Mapping[str, FileFingerprint],
) -> List[str]:
    """Paths that were added, removed or modified between two snapshots."""
    changed = []
    for path in sorted(set(previous) | set(current)):
        if path not in previous or path not in current:
            changed.append(path)
        elif previous[path] != current[path].sha256:
            changed.append(path)
    return changed
