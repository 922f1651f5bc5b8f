"""Resolution of staging, cache and index locations from configuration."""

from .resolver import DEFAULT_SCHEMA_VERSION, StagingConfig, StagingLayout, resolve_staging

__all__ = ["DEFAULT_SCHEMA_VERSION", "StagingConfig", "StagingLayout", "resolve_staging"]
