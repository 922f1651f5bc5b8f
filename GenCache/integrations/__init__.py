"""Concrete generation jobs: integration-test builds and the bootstrap step."""

from .bootstrap import (
    KAFKA,
    BootstrapOutcome,
    BootstrapPlan,
    RepositoryRef,
    clone_job,
    plan_bootstrap,
    project_job,
    run_bootstrap,
)
from .community import (
    SBT_VARIANTS,
    IntegrationVariant,
    integrations_job,
    prepare_integrations_job,
    write_schema_version,
)

__all__ = [
    "KAFKA",
    "SBT_VARIANTS",
    "BootstrapOutcome",
    "BootstrapPlan",
    "IntegrationVariant",
    "RepositoryRef",
    "clone_job",
    "integrations_job",
    "plan_bootstrap",
    "prepare_integrations_job",
    "project_job",
    "run_bootstrap",
    "write_schema_version",
]
