from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from ..cache.fingerprints import changed_inputs, fingerprint_snapshot, snapshot_inputs
from ..cache.store import CacheStore
from ..core.errors import CommandFailure, CommitError, HashingError
from ..execution.models import ExecutionResult
from ..execution.runner import ExternalInvoker
from .models import GenerationJob, JobResult, JobStatus, RunReport, StalenessCheck

StoreFactory = Callable[[Path], CacheStore]


class GenerationOrchestrator:
    """Hash-gated regeneration driver.

    For each job:
    - fingerprint the tracked inputs
    - compare with the last committed fingerprint in the job's cache directory
    - if they differ, run the job's commands in order, stopping at the first failure
    - commit the new fingerprint only when every command succeeded

    Errors never escape `run_if_stale`; they are returned in `JobResult.error`.
    """

    def __init__(
        self,
        *,
        invoker: Optional[ExternalInvoker] = None,
        store_factory: Optional[StoreFactory] = None,
        verify_outputs: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.invoker = invoker or ExternalInvoker(logger=self.logger)
        self._store_factory = store_factory or (lambda d: CacheStore(d, logger=self.logger))
        self.verify_outputs = bool(verify_outputs)

    def store_for(self, job: GenerationJob) -> CacheStore:
        return self._store_factory(job.cache_dir)

    def check(self, job: GenerationJob) -> StalenessCheck:
        """Staleness of `job` without running anything. May raise HashingError."""
        snapshot = snapshot_inputs(job.inputs)
        fingerprint = fingerprint_snapshot(snapshot)
        record = self.store_for(job).load(job.cache_key)
        previous = record.fingerprint if record is not None else None
        changed = changed_inputs(record.inputs, snapshot) if record is not None else sorted(snapshot)
        return StalenessCheck(job_name=job.name, fingerprint=fingerprint, previous=previous, changed_inputs=changed)

    def run_if_stale(self, job: GenerationJob) -> JobResult:
        store = self.store_for(job)
        try:
            snapshot = snapshot_inputs(job.inputs)
            fingerprint = fingerprint_snapshot(snapshot)
        except HashingError as exc:
            self.logger.error(f"Cannot fingerprint inputs of {job.name}: {exc}")
            return JobResult(job_name=job.name, status=JobStatus.FAILED, error=exc)

        record = store.load(job.cache_key)
        if record is not None and record.fingerprint == fingerprint:
            self.logger.debug(f"{job.name} is up to date ({fingerprint[:12]})")
            return JobResult(job_name=job.name, status=JobStatus.UP_TO_DATE, outputs=job.outputs, fingerprint=fingerprint)

        if record is None:
            self.logger.info(f"Generating {job.name} (no previous record)")
        else:
            changed = changed_inputs(record.inputs, snapshot)
            self.logger.info(f"Generating {job.name} ({len(changed)} changed input(s))")
            for path in changed:
                self.logger.debug(f"  changed: {path}")

        if job.deliverable is not None:
            try:
                _delete_path(job.deliverable)
            except CommitError as exc:
                self.logger.error(str(exc))
                return JobResult(job_name=job.name, status=JobStatus.FAILED, fingerprint=fingerprint, error=exc)

        executions: List[ExecutionResult] = []
        for step in job.commands:
            try:
                executions.append(self.invoker.run(step.command, step.cwd, label=step.label, env=step.env))
            except CommandFailure as exc:
                self.logger.error(f"Failed to generate {job.name}: {exc}")
                return JobResult(
                    job_name=job.name,
                    status=JobStatus.FAILED,
                    fingerprint=fingerprint,
                    executions=tuple(executions),
                    error=exc,
                )

        if self.verify_outputs:
            for output in job.outputs:
                if not output.exists():
                    self.logger.warning(f"{job.name} did not produce declared output {output}")

        try:
            store.commit(job.cache_key, fingerprint, job.outputs, inputs=snapshot)
        except CommitError as exc:
            self.logger.error(f"Generated {job.name} but could not record it: {exc}")
            return JobResult(
                job_name=job.name,
                status=JobStatus.FAILED,
                outputs=job.outputs,
                fingerprint=fingerprint,
                executions=tuple(executions),
                error=exc,
            )

        self.logger.info(f"Generated {job.name}")
        return JobResult(
            job_name=job.name,
            status=JobStatus.REGENERATED,
            outputs=job.outputs,
            fingerprint=fingerprint,
            executions=tuple(executions),
        )

    def run_all(self, jobs: Iterable[GenerationJob], *, fail_fast: bool = False) -> RunReport:
        """Run independent jobs in declaration order and aggregate their results."""
        results: List[JobResult] = []
        for job in jobs:
            result = self.run_if_stale(job)
            results.append(result)
            if fail_fast and not result.ok:
                break
        return RunReport(results=tuple(results))


def _delete_path(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        raise CommitError(f"Cannot remove stale deliverable {path}: {exc}", record_path=path) from exc
