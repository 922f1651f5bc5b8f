from __future__ import annotations

import errno
import os
import sys
from pathlib import Path

import pytest

from GenCache.cache.fingerprints import TrackedInputSet, fingerprint_inputs
from GenCache.cache.store import CacheStore
from GenCache.core.errors import CommandFailure, CommitError
from GenCache.execution.runner import ExternalInvoker
from GenCache.pipeline.models import GenerationJob, JobCommand, JobStatus
from GenCache.pipeline.orchestrator import GenerationOrchestrator

from conftest import RecordingInvoker, python_command, write

_COUNTING_WRITER = (
    "import pathlib\n"
    "log = pathlib.Path('runs.log')\n"
    "log.write_text(log.read_text() + 'run\\n' if log.exists() else 'run\\n')\n"
    "pathlib.Path('out').write_text(pathlib.Path('x').read_text())\n"
)


def _job(tmp_path: Path, inputs, labels=("A",), **kwargs) -> GenerationJob:
    commands = tuple(JobCommand(label=label, command=python_command("pass"), cwd=tmp_path) for label in labels)
    return GenerationJob(
        name=kwargs.pop("name", "job"),
        inputs=TrackedInputSet.of(inputs),
        commands=commands,
        cache_dir=kwargs.pop("cache_dir", tmp_path / "cache"),
        **kwargs,
    )


def test_three_run_scenario(tmp_path: Path):
    x = write(tmp_path / "x", "1")
    out = tmp_path / "out"
    job = GenerationJob(
        name="scenario",
        inputs=TrackedInputSet.of([x]),
        commands=(JobCommand(label="generate", command=python_command(_COUNTING_WRITER), cwd=tmp_path),),
        cache_dir=tmp_path / "cache",
        outputs=(out,),
    )
    orchestrator = GenerationOrchestrator()
    store = CacheStore(tmp_path / "cache")

    first = orchestrator.run_if_stale(job)
    assert first.status is JobStatus.REGENERATED
    assert out.read_text() == "1"
    assert (tmp_path / "runs.log").read_text().count("run") == 1
    assert store.lookup("scenario") == fingerprint_inputs(TrackedInputSet.of([x]))
    first_mtime = out.stat().st_mtime_ns

    second = orchestrator.run_if_stale(job)
    assert second.status is JobStatus.UP_TO_DATE
    assert second.outputs == (out,)
    assert second.executions == ()
    assert (tmp_path / "runs.log").read_text().count("run") == 1
    assert out.stat().st_mtime_ns == first_mtime

    x.write_text("2", encoding="utf-8")
    third = orchestrator.run_if_stale(job)
    assert third.status is JobStatus.REGENERATED
    assert (tmp_path / "runs.log").read_text().count("run") == 2
    assert out.read_text() == "2"
    assert store.lookup("scenario") == fingerprint_inputs(TrackedInputSet.of([x]))


def test_second_run_spawns_nothing(tmp_path: Path, recording_invoker: RecordingInvoker):
    job = _job(tmp_path, [write(tmp_path / "build.sbt", "a")], labels=("A", "B"))
    orchestrator = GenerationOrchestrator(invoker=recording_invoker)

    orchestrator.run_if_stale(job)
    assert recording_invoker.calls == ["A", "B"]

    orchestrator.run_if_stale(job)
    assert recording_invoker.calls == ["A", "B"]


def test_untracked_change_does_not_regenerate(tmp_path: Path, recording_invoker: RecordingInvoker):
    tracked = write(tmp_path / "build.sbt", "a")
    untracked = write(tmp_path / "README.md", "a")
    job = _job(tmp_path, [tracked])
    orchestrator = GenerationOrchestrator(invoker=recording_invoker)

    orchestrator.run_if_stale(job)
    untracked.write_text("b", encoding="utf-8")
    assert orchestrator.run_if_stale(job).status is JobStatus.UP_TO_DATE
    assert recording_invoker.calls == ["A"]


def test_first_failure_short_circuits(tmp_path: Path):
    invoker = RecordingInvoker(failing={"A"})
    job = _job(tmp_path, [write(tmp_path / "build.sbt", "a")], labels=("A", "B", "C"))

    result = GenerationOrchestrator(invoker=invoker).run_if_stale(job)

    assert invoker.calls == ["A"]
    assert result.status is JobStatus.FAILED
    assert isinstance(result.error, CommandFailure)
    assert result.error.label == "A"


def test_failure_never_commits(tmp_path: Path):
    job = _job(tmp_path, [write(tmp_path / "build.sbt", "a")], labels=("A", "B"))

    failing = RecordingInvoker(failing={"B"})
    assert not GenerationOrchestrator(invoker=failing).run_if_stale(job).ok
    assert CacheStore(tmp_path / "cache").lookup("job") is None

    # Identical inputs: the job is still stale and the whole sequence is retried.
    retry = RecordingInvoker()
    result = GenerationOrchestrator(invoker=retry).run_if_stale(job)
    assert retry.calls == ["A", "B"]
    assert result.status is JobStatus.REGENERATED


def test_real_failing_command_reports_exit_code(tmp_path: Path):
    job = GenerationJob(
        name="job",
        inputs=TrackedInputSet(),
        commands=(
            JobCommand(label="fail", command=python_command("import sys; sys.exit(7)"), cwd=tmp_path),
            JobCommand(label="never", command=python_command("open('never', 'w').close()"), cwd=tmp_path),
        ),
        cache_dir=tmp_path / "cache",
    )
    result = GenerationOrchestrator(invoker=ExternalInvoker()).run_if_stale(job)

    assert result.error_kind == "command"
    assert result.error.exit_code == 7
    assert not (tmp_path / "never").exists()


def test_stale_deliverable_is_deleted_before_regeneration(tmp_path: Path):
    index = write(tmp_path / "index.csv", "stale")
    job = _job(tmp_path, [write(tmp_path / "build.sbt", "a")], deliverable=index, outputs=(index,))

    result = GenerationOrchestrator(invoker=RecordingInvoker(failing={"A"})).run_if_stale(job)

    assert not result.ok
    assert not index.exists()


def test_empty_inputs_and_outputs_run_once(tmp_path: Path, recording_invoker: RecordingInvoker):
    job = _job(tmp_path, [], labels=("clone",))
    orchestrator = GenerationOrchestrator(invoker=recording_invoker)

    assert orchestrator.run_if_stale(job).status is JobStatus.REGENERATED
    assert orchestrator.run_if_stale(job).status is JobStatus.UP_TO_DATE
    assert recording_invoker.calls == ["clone"]


def test_hashing_error_fails_only_that_job(tmp_path: Path, recording_invoker: RecordingInvoker):
    (tmp_path / "dir.sbt").mkdir()
    broken = _job(tmp_path, [tmp_path / "dir.sbt"], name="broken", cache_dir=tmp_path / "c1")
    healthy = _job(tmp_path, [write(tmp_path / "ok.sbt", "a")], name="healthy", cache_dir=tmp_path / "c2")

    report = GenerationOrchestrator(invoker=recording_invoker).run_all([broken, healthy])

    assert not report.ok
    assert report.result_for("broken").error_kind == "hashing"
    assert report.result_for("healthy").status is JobStatus.REGENERATED
    assert recording_invoker.calls == ["A"]


def test_corrupt_record_regenerates(tmp_path: Path, recording_invoker: RecordingInvoker):
    job = _job(tmp_path, [write(tmp_path / "build.sbt", "a")])
    write(CacheStore(job.cache_dir).record_path(job.cache_key), "{broken")

    result = GenerationOrchestrator(invoker=recording_invoker).run_if_stale(job)

    assert result.status is JobStatus.REGENERATED
    assert recording_invoker.calls == ["A"]


def test_binary_garbage_record_regenerates(tmp_path: Path, recording_invoker: RecordingInvoker):
    job = _job(tmp_path, [write(tmp_path / "build.sbt", "a")])
    record = CacheStore(job.cache_dir).record_path(job.cache_key)
    record.parent.mkdir(parents=True)
    record.write_bytes(b"\xff\xfe\x00garbage")

    result = GenerationOrchestrator(invoker=recording_invoker).run_if_stale(job)

    assert result.status is JobStatus.REGENERATED
    assert recording_invoker.calls == ["A"]
    assert CacheStore(job.cache_dir).lookup(job.cache_key) == result.fingerprint


def test_commit_error_is_surfaced(tmp_path: Path, recording_invoker: RecordingInvoker):
    blocker = write(tmp_path / "cache", "not a directory")
    job = _job(tmp_path, [write(tmp_path / "build.sbt", "a")], cache_dir=blocker)

    result = GenerationOrchestrator(invoker=recording_invoker).run_if_stale(job)

    assert result.status is JobStatus.FAILED
    assert isinstance(result.error, CommitError)
    assert recording_invoker.calls == ["A"]


def test_run_all_keeps_order_and_fail_fast(tmp_path: Path):
    jobs = [
        _job(tmp_path, [], labels=(f"{name}-cmd",), name=name, cache_dir=tmp_path / name)
        for name in ("first", "second", "third")
    ]

    invoker = RecordingInvoker(failing={"second-cmd"})
    report = GenerationOrchestrator(invoker=invoker).run_all(jobs)
    assert invoker.calls == ["first-cmd", "second-cmd", "third-cmd"]
    assert [r.job_name for r in report.failures] == ["second"]

    fast = RecordingInvoker(failing={"first-cmd"})
    for name in ("first", "second", "third"):
        for record in (tmp_path / name).glob("*.json"):
            record.unlink()
    report = GenerationOrchestrator(invoker=fast).run_all(jobs, fail_fast=True)
    assert fast.calls == ["first-cmd"]
    assert len(report.results) == 1


def test_check_reports_changed_inputs(tmp_path: Path, recording_invoker: RecordingInvoker):
    a = write(tmp_path / "a.sbt", "1")
    job = _job(tmp_path, [a])
    orchestrator = GenerationOrchestrator(invoker=recording_invoker)

    assert orchestrator.check(job).stale is True
    orchestrator.run_if_stale(job)
    assert orchestrator.check(job).stale is False

    a.write_text("2", encoding="utf-8")
    check = orchestrator.check(job)
    assert check.stale is True
    assert check.changed_inputs == [str(a.resolve())]
    assert recording_invoker.calls == ["A"]


def test_stat_error_fails_only_that_job(tmp_path: Path, recording_invoker: RecordingInvoker, monkeypatch):
    real_exists = Path.exists

    def exists(self, *args, **kwargs):
        if self.name == "flaky.sbt":
            raise OSError(errno.ENAMETOOLONG, "File name too long", str(self))
        return real_exists(self, *args, **kwargs)

    monkeypatch.setattr(Path, "exists", exists)
    broken = _job(tmp_path, [tmp_path / "flaky.sbt"], name="broken", cache_dir=tmp_path / "c1")
    other = _job(tmp_path, [write(tmp_path / "ok.sbt", "a")], name="other", cache_dir=tmp_path / "c2")

    report = GenerationOrchestrator(invoker=recording_invoker).run_all([broken, other])

    assert report.result_for("broken").error_kind == "hashing"
    assert report.result_for("other").status is JobStatus.REGENERATED
    assert recording_invoker.calls == ["A"]


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="needs byte file names")
def test_undecodable_input_name_does_not_stop_siblings(tmp_path: Path, recording_invoker: RecordingInvoker):
    odd = write(tmp_path / os.fsdecode(b"bad\xff.scala"), "object Bad")
    job = _job(tmp_path, [odd], name="odd", cache_dir=tmp_path / "c1")
    other = _job(tmp_path, [write(tmp_path / "ok.sbt", "a")], name="other", cache_dir=tmp_path / "c2")
    orchestrator = GenerationOrchestrator(invoker=recording_invoker)

    first = orchestrator.run_all([job, other])
    assert first.ok
    assert [r.status for r in first.results] == [JobStatus.REGENERATED, JobStatus.REGENERATED]

    second = orchestrator.run_all([job, other])
    assert [r.status for r in second.results] == [JobStatus.UP_TO_DATE, JobStatus.UP_TO_DATE]
    assert recording_invoker.calls == ["A", "A"]


def test_undeletable_deliverable_is_a_commit_error(tmp_path: Path, recording_invoker: RecordingInvoker):
    index = tmp_path / "index.csv"
    write(index / "blocker", "a directory where the index should be")
    job = _job(tmp_path, [write(tmp_path / "build.sbt", "a")], deliverable=index)

    result = GenerationOrchestrator(invoker=recording_invoker).run_if_stale(job)

    assert result.status is JobStatus.FAILED
    assert isinstance(result.error, CommitError)
    assert result.error_kind == "commit"
    assert recording_invoker.calls == []
