from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from ..cache.fingerprints import TrackedInputSet
from ..cache.inputs import plugin_source_files, project_input_files
from ..cache.store import stable_key
from ..discovery.discover import discover_project_dirs
from ..discovery.models import BootstrapContext, DiscoveryResult
from ..execution.commands import GIT, SBT, CommandBuilder, HostOS
from ..pipeline.models import GenerationJob, JobCommand, RunReport
from ..pipeline.orchestrator import GenerationOrchestrator
from ..staging.resolver import StagingLayout

PROJECT_GENERATION_TASKS: Tuple[str, ...] = ("bloopInstall",)


@dataclass(frozen=True)
class RepositoryRef:
    name: str
    uri: str
    commit: str

    @property
    def reference(self) -> str:
        return f"{self.uri}#{self.commit}"


# Checked out so that the gradle plugin tests can build a real project.
KAFKA = RepositoryRef(
    name="kafka",
    uri="https://github.com/apache/kafka.git",
    commit="57320981bb98086a0b9f836a29df248b1c0378c3",
)


@dataclass(frozen=True)
class BootstrapPlan:
    discovery: DiscoveryResult
    clone_job: Optional[GenerationJob]
    project_jobs: Tuple[GenerationJob, ...]

    @property
    def jobs(self) -> List[GenerationJob]:
        head = [self.clone_job] if self.clone_job is not None else []
        return head + list(self.project_jobs)


@dataclass(frozen=True)
class BootstrapOutcome:
    context: BootstrapContext
    report: RunReport

    @property
    def ok(self) -> bool:
        return self.report.ok


def clone_job(layout: StagingLayout, repository: RepositoryRef, host: HostOS) -> GenerationJob:
    """Fetch `repository` at its pinned commit into the staging directory.

    The job tracks no inputs: once committed it never runs again until its
    record is removed.
    """
    target = layout.clone_dir(repository.reference)
    return GenerationJob(
        name=f"clone:{repository.name}",
        inputs=TrackedInputSet(),
        commands=(
            JobCommand(
                label=f"Initializing {repository.name} checkout",
                command=CommandBuilder(GIT, host).arg("init", "--quiet", target).build(),
                cwd=layout.staging_root,
            ),
            JobCommand(
                label=f"Fetching {repository.name} at {repository.commit[:12]}",
                command=CommandBuilder(GIT, host).arg("fetch", "--quiet", "--depth", "1", repository.uri, repository.commit).build(),
                cwd=target,
            ),
            JobCommand(
                label=f"Checking out {repository.name} at {repository.commit[:12]}",
                command=CommandBuilder(GIT, host).arg("checkout", "--quiet", "--force", "FETCH_HEAD").build(),
                cwd=target,
            ),
        ),
        cache_dir=layout.clone_cache_dir,
        outputs=(target,),
        key=stable_key({"kind": "clone", "uri": repository.uri, "commit": repository.commit}),
    )


def project_job(project_dir: Path, plugin_inputs: TrackedInputSet, host: HostOS) -> GenerationJob:
    project_dir = Path(project_dir)
    return GenerationJob(
        name=f"project:{project_dir.name}",
        inputs=project_input_files(project_dir).union(plugin_inputs),
        commands=(
            JobCommand(
                label=f"Generating bloop configuration files for {project_dir}",
                command=CommandBuilder(SBT, host).tasks(PROJECT_GENERATION_TASKS).build(),
                cwd=project_dir,
            ),
        ),
        cache_dir=StagingLayout.project_cache_dir(project_dir),
        outputs=(project_dir / ".bloop",),
    )


def plan_bootstrap(
    layout: StagingLayout,
    host: HostOS,
    *,
    repository: Optional[RepositoryRef] = KAFKA,
) -> BootstrapPlan:
    discovery = discover_project_dirs(layout.test_resources_dir)
    plugin_inputs = plugin_source_files(layout.plugin_source_dir)
    return BootstrapPlan(
        discovery=discovery,
        clone_job=clone_job(layout, repository, host) if repository is not None else None,
        project_jobs=tuple(project_job(d, plugin_inputs, host) for d in discovery.project_dirs),
    )


def run_bootstrap(
    layout: StagingLayout,
    orchestrator: GenerationOrchestrator,
    host: HostOS,
    *,
    repository: Optional[RepositoryRef] = KAFKA,
    fail_fast: bool = False,
) -> BootstrapOutcome:
    """Clone the pinned repository, then regenerate every stale test project.

    A failing job is reported and the remaining projects still run unless
    `fail_fast` is set.
    """
    plan = plan_bootstrap(layout, host, repository=repository)
    if plan.clone_job is not None:
        layout.staging_root.mkdir(parents=True, exist_ok=True)

    report = orchestrator.run_all(plan.jobs, fail_fast=fail_fast)

    integration_dirs: Tuple[Path, ...] = ()
    if plan.clone_job is not None:
        clone_result = report.result_for(plan.clone_job.name)
        if clone_result is not None and clone_result.ok:
            integration_dirs = tuple(plan.clone_job.outputs)
        else:
            orchestrator.logger.error(f"{repository.name} could not be cloned; gradle integration dirs are unavailable")

    context = BootstrapContext(discovery=plan.discovery, gradle_integration_dirs=integration_dirs)
    return BootstrapOutcome(context=context, report=report)
