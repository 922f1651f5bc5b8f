from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from hashlib import sha256
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..core.errors import CacheReadError, CommitError
from .fingerprints import FileFingerprint, Fingerprint

RECORD_FORMAT_VERSION = 1

_SAFE_KEY_RE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class CacheRecord:
    key: str
    fingerprint: Fingerprint
    outputs: List[str] = field(default_factory=list)
    # path -> sha256, or None for a tracked path that was absent
    inputs: Dict[str, Optional[str]] = field(default_factory=dict)
    committed_at: str = ""
    format_version: int = RECORD_FORMAT_VERSION

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            "format_version": self.format_version,
            "key": self.key,
            "fingerprint": self.fingerprint,
            "outputs": list(self.outputs),
            "inputs": dict(self.inputs),
            "committed_at": self.committed_at,
        }

    @staticmethod
    def from_json_dict(payload: Any) -> "CacheRecord":
        if not isinstance(payload, dict):
            raise ValueError("record is not a JSON object")
        if payload.get("format_version") != RECORD_FORMAT_VERSION:
            raise ValueError(f"unsupported record format {payload.get('format_version')!r}")
        fingerprint = payload.get("fingerprint")
        if not isinstance(fingerprint, str) or not fingerprint:
            raise ValueError("record has no fingerprint")
        inputs = payload.get("inputs") or {}
        if not isinstance(inputs, dict):
            raise ValueError("record inputs are not a mapping")
        return CacheRecord(
            key=str(payload.get("key") or ""),
            fingerprint=fingerprint,
            outputs=[str(p) for p in (payload.get("outputs") or [])],
            inputs={str(k): (str(v) if v is not None else None) for k, v in inputs.items()},
            committed_at=str(payload.get("committed_at") or ""),
        )


def stable_key(parts: Dict[str, Any]) -> str:
    raw = json.dumps(parts, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return sha256(raw).hexdigest()


def record_file_name(key: str) -> str:
    safe = _SAFE_KEY_RE.sub("_", key).strip("._") or "record"
    if safe != key:
        # Different raw keys must never collapse onto the same file.
        safe = f"{safe[:48]}-{sha256(key.encode('utf-8')).hexdigest()[:12]}"
    return f"{safe}.json"


class CacheStore:
    """Persists the last committed fingerprint per key under one cache directory.

    A missing or unreadable record is a cache miss. Commits replace the record
    atomically (temp file in the same directory, then `os.replace`).
    """

    def __init__(self, cache_dir: Path, *, logger: Optional[logging.Logger] = None):
        self.cache_dir = Path(cache_dir)
        self._logger = logger or logging.getLogger(__name__)

    def record_path(self, key: str) -> Path:
        return self.cache_dir / record_file_name(key)

    def read(self, key: str) -> Optional[CacheRecord]:
        """Return the committed record, None when never committed.

        Raises CacheReadError when a record exists but cannot be used.
        """
        path = self.record_path(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise CacheReadError(f"Cannot read cache record {path}: {exc}", record_path=path) from exc
        try:
            # UnicodeDecodeError is a ValueError
            return CacheRecord.from_json_dict(json.loads(raw.decode("utf-8")))
        except (ValueError, TypeError) as exc:
            raise CacheReadError(f"Corrupt cache record {path}: {exc}", record_path=path) from exc

    def load(self, key: str) -> Optional[CacheRecord]:
        try:
            return self.read(key)
        except CacheReadError as exc:
            self._logger.warning(f"{exc}; treating as a cache miss")
            return None

    def lookup(self, key: str) -> Optional[Fingerprint]:
        record = self.load(key)
        return record.fingerprint if record is not None else None

    def is_stale(self, key: str, fingerprint: Fingerprint) -> bool:
        return self.lookup(key) != fingerprint

    def commit(
        self,
        key: str,
        fingerprint: Fingerprint,
        outputs: Iterable[Path] = (),
        *,
        inputs: Optional[Mapping[str, FileFingerprint]] = None,
    ) -> CacheRecord:
        record = CacheRecord(
            key=key,
            fingerprint=fingerprint,
            outputs=[str(p) for p in outputs],
            inputs={k: v.sha256 for k, v in (inputs or {}).items()},
            committed_at=datetime.now(timezone.utc).isoformat(),
        )
        path = self.record_path(key)
        tmp_path = path.with_name(f".{path.name}.{os.getpid()}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(record.to_json_dict(), indent=2, sort_keys=True) + "\n", encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            raise CommitError(f"Cannot persist cache record {path}: {exc}", record_path=path) from exc
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass
        return record
