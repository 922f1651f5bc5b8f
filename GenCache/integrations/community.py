"""Generation of the integration-test build configuration.

Every sbt variant under `build-integrations/` is loaded with the integration
plugin, its builds are cleaned, their configuration is exported and a CSV
index describing all of them is written to the staging directory. The whole
sequence is one job: any variant failing fails the job and nothing is
recorded, so the next run starts over.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple

from ..cache.fingerprints import TrackedInputSet
from ..execution.commands import BASH, SBT, CommandBuilder, CommandLine, HostOS
from ..pipeline.models import GenerationJob, JobCommand
from ..staging.resolver import StagingLayout

JOB_NAME = "integrations"

STAGING_PROPERTY = "sbt.global.staging"
GLOBAL_SETTINGS_PROPERTY = "sbt.global.settings"
GLOBAL_PLUGINS_PROPERTY = "sbt.global.plugins"
INDEX_PROPERTY = "bloop.integrations.index"
SCHEMA_VERSION_PROPERTY = "bloop.integrations.schemaVersion"

GENERATION_TASKS: Tuple[str, ...] = ("cleanAllBuilds", "bloopInstall", "buildIndex")

INTEGRATION_PLUGIN_SOURCE = Path("global/src/main/scala/bloop/build/integrations/IntegrationPlugin.scala")


@dataclass(frozen=True)
class IntegrationVariant:
    directory: str
    description: str

    def build_files(self, base: Path) -> List[Path]:
        root = base / self.directory
        return [root / "build.sbt", root / "project" / "Integrations.scala"]


SBT_VARIANTS: Tuple[IntegrationVariant, ...] = (
    IntegrationVariant("sbt-0.13", "sbt 0.13"),
    IntegrationVariant("sbt-0.13-2", "sbt 0.13 (2)"),
    IntegrationVariant("sbt-0.13-3", "sbt 0.13 (3)"),
    IntegrationVariant("sbt-1.0", "sbt 1.0"),
    IntegrationVariant("sbt-1.0-2", "sbt 1.0 (2)"),
    IntegrationVariant("sbt-1.0-3", "sbt 1.0 (3)"),
)


def write_schema_version(layout: StagingLayout) -> Path:
    """Persist the schema version so that bumping it invalidates the cache."""
    path = layout.schema_version_file
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(layout.schema_version, encoding="utf-8")
    return path


def integration_inputs(layout: StagingLayout, variants: Sequence[IntegrationVariant] = SBT_VARIANTS) -> TrackedInputSet:
    base = layout.build_integrations_base
    files: List[Path] = []
    for variant in variants:
        files.extend(variant.build_files(base))
    files.append(base / INTEGRATION_PLUGIN_SOURCE)
    return TrackedInputSet.of(files, required=[layout.schema_version_file])


def generation_command(layout: StagingLayout, host: HostOS) -> CommandLine:
    return (
        CommandBuilder(SBT, host)
        .system_property(STAGING_PROPERTY, layout.staging_root)
        .system_property(INDEX_PROPERTY, layout.integrations_index)
        .system_property(GLOBAL_PLUGINS_PROPERTY, layout.global_plugins_base)
        .system_property(GLOBAL_SETTINGS_PROPERTY, layout.global_settings_base)
        .system_property(SCHEMA_VERSION_PROPERTY, layout.schema_version)
        .tasks(GENERATION_TASKS)
        .build()
    )


def integration_commands(
    layout: StagingLayout,
    host: HostOS,
    variants: Sequence[IntegrationVariant] = SBT_VARIANTS,
) -> Tuple[JobCommand, ...]:
    base = layout.build_integrations_base
    steps: List[JobCommand] = []
    if host is not HostOS.WINDOWS:
        # Twitter projects are not part of the community build on Windows.
        steps.append(
            JobCommand(
                label="Publishing dodo snapshots for twitter projects",
                command=CommandBuilder(BASH, host).arg(layout.twitter_dodo, "--no-test", "finagle").build(),
                cwd=base,
            )
        )
    command = generation_command(layout, host)
    for variant in variants:
        steps.append(
            JobCommand(
                label=f"Generating bloop config with {variant.description}",
                command=command,
                cwd=base / variant.directory,
            )
        )
    return tuple(steps)


def integrations_job(
    layout: StagingLayout,
    host: HostOS,
    variants: Sequence[IntegrationVariant] = SBT_VARIANTS,
) -> GenerationJob:
    return GenerationJob(
        name=JOB_NAME,
        inputs=integration_inputs(layout, variants),
        commands=integration_commands(layout, host, variants),
        cache_dir=layout.integrations_cache_dir,
        outputs=(layout.integrations_index,),
        deliverable=layout.integrations_index,
    )


def prepare_integrations_job(
    layout: StagingLayout,
    host: HostOS,
    variants: Sequence[IntegrationVariant] = SBT_VARIANTS,
) -> GenerationJob:
    """Write the schema version seed file, then describe the job."""
    write_schema_version(layout)
    return integrations_job(layout, host, variants)
