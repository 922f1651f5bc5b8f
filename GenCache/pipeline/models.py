from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..cache.fingerprints import Fingerprint, TrackedInputSet
from ..core.errors import GenerationError
from ..execution.commands import CommandLine
from ..execution.models import ExecutionResult


@dataclass(frozen=True)
class JobCommand:
    """One external step of a job: what to run, where, and under which name."""

    label: str
    command: CommandLine
    cwd: Path
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GenerationJob:
    """A unit of "check staleness, then regenerate via external commands".

    Notes:
    - `cache_dir` holds this job's record; jobs never share one by accident
      because `cache_key` defaults to the job name.
    - `deliverable` is removed before regeneration so that a failed run never
      leaves a stale aggregate behind.
    - `outputs` is trusted, not verified: staleness depends on inputs only.
    """

    name: str
    inputs: TrackedInputSet
    commands: Tuple[JobCommand, ...]
    cache_dir: Path
    outputs: Tuple[Path, ...] = ()
    deliverable: Optional[Path] = None
    key: Optional[str] = None

    @property
    def cache_key(self) -> str:
        return self.key or self.name


class JobStatus(str, Enum):
    UP_TO_DATE = "up-to-date"
    REGENERATED = "regenerated"
    FAILED = "failed"


@dataclass(frozen=True)
class StalenessCheck:
    job_name: str
    fingerprint: Fingerprint
    previous: Optional[Fingerprint]
    changed_inputs: List[str] = field(default_factory=list)

    @property
    def stale(self) -> bool:
        return self.previous != self.fingerprint


@dataclass(frozen=True)
class JobResult:
    job_name: str
    status: JobStatus
    outputs: Tuple[Path, ...] = ()
    fingerprint: Optional[Fingerprint] = None
    executions: Tuple[ExecutionResult, ...] = ()
    error: Optional[GenerationError] = None

    @property
    def ok(self) -> bool:
        return self.status is not JobStatus.FAILED

    @property
    def error_kind(self) -> Optional[str]:
        return self.error.kind if self.error is not None else None

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            "job": self.job_name,
            "status": self.status.value,
            "outputs": [str(p) for p in self.outputs],
            "fingerprint": self.fingerprint,
            "executions": [e.to_json_dict() for e in self.executions],
            "error": str(self.error) if self.error is not None else None,
            "error_kind": self.error_kind,
        }


@dataclass(frozen=True)
class RunReport:
    results: Tuple[JobResult, ...] = ()

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    @property
    def failures(self) -> List[JobResult]:
        return [r for r in self.results if not r.ok]

    def result_for(self, job_name: str) -> Optional[JobResult]:
        for r in self.results:
            if r.job_name == job_name:
                return r
        return None

    def raise_for_failures(self) -> None:
        """Raise the error of the first failed job, in declaration order."""
        for r in self.results:
            if r.error is not None and not r.ok:
                raise r.error

    def to_json_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "results": [r.to_json_dict() for r in self.results]}
