from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence


class GenerationError(RuntimeError):
    """Base class for every failure a generation job can report."""

    kind: str = "generation"


class ConfigurationError(GenerationError):
    kind = "configuration"


class HashingError(GenerationError):
    kind = "hashing"

    def __init__(self, message: str, *, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class CacheReadError(GenerationError):
    kind = "cache-read"

    def __init__(self, message: str, *, record_path: Optional[Path] = None):
        super().__init__(message)
        self.record_path = record_path


class CommitError(GenerationError):
    kind = "commit"

    def __init__(self, message: str, *, record_path: Optional[Path] = None):
        super().__init__(message)
        self.record_path = record_path


class CommandFailure(GenerationError):
    """An external command exited non-zero (or could not be started)."""

    kind = "command"

    def __init__(
        self,
        *,
        label: str,
        argv: Sequence[str],
        cwd: Path,
        exit_code: Optional[int],
        reason: Optional[str] = None,
    ):
        self.label = label
        self.argv: List[str] = list(argv)
        self.cwd = Path(cwd)
        self.exit_code = exit_code
        self.reason = reason
        detail = f"exit code {exit_code}" if exit_code is not None else (reason or "could not be started")
        super().__init__(f"{label} failed in {self.cwd} ({detail}): {' '.join(self.argv)}")
