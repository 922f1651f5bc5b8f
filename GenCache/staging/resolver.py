from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from hashlib import sha256
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..core.errors import ConfigurationError

ENV_BASE_DIR = "GENCACHE_BASE_DIR"
ENV_GLOBAL_BASE = "GENCACHE_GLOBAL_BASE"
ENV_STAGING_DIR = "GENCACHE_STAGING_DIR"
ENV_SCHEMA_VERSION = "GENCACHE_SCHEMA_VERSION"

# Bumped every time the format of the generated configuration files changes.
DEFAULT_SCHEMA_VERSION = "4.2"


@dataclass(frozen=True)
class StagingConfig:
    """Process-wide locations a generation run is derived from.

    Notes:
    - `base_dir` is the checkout the tool operates on and is mandatory.
    - `global_base` defaults to `<base_dir>/.gencache`.
    - `staging_dir` defaults to `<global_base>/staging`.
    """

    base_dir: Optional[str] = None
    global_base: Optional[str] = None
    staging_dir: Optional[str] = None
    schema_version: str = DEFAULT_SCHEMA_VERSION

    def to_json_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_env(environ: Optional[Mapping[str, str]] = None, **overrides: Optional[str]) -> "StagingConfig":
        """Read the configuration from the environment; non-None overrides win."""
        env = os.environ if environ is None else environ
        values: Dict[str, Optional[str]] = {
            "base_dir": env.get(ENV_BASE_DIR) or None,
            "global_base": env.get(ENV_GLOBAL_BASE) or None,
            "staging_dir": env.get(ENV_STAGING_DIR) or None,
            "schema_version": env.get(ENV_SCHEMA_VERSION) or DEFAULT_SCHEMA_VERSION,
        }
        for name, value in overrides.items():
            if name not in values:
                raise TypeError(f"Unknown staging option: {name}")
            if value is not None:
                values[name] = value
        return StagingConfig(**values)  # type: ignore[arg-type]


@dataclass(frozen=True)
class StagingLayout:
    base_dir: Path
    global_base: Path
    staging_root: Path
    schema_version: str

    @property
    def integrations_cache_dir(self) -> Path:
        return self.staging_root / "integrations-cache"

    @property
    def integrations_index(self) -> Path:
        return self.staging_root / f"bloop-integrations-{self.schema_version}.csv"

    @property
    def build_integrations_base(self) -> Path:
        return self.base_dir / "build-integrations"

    @property
    def twitter_dodo(self) -> Path:
        return self.build_integrations_base / "build-twitter"

    @property
    def global_plugins_base(self) -> Path:
        return self.build_integrations_base / "global"

    @property
    def global_settings_base(self) -> Path:
        return self.global_plugins_base / "settings"

    @property
    def schema_version_file(self) -> Path:
        return self.base_dir / "target" / "schema-version.json"

    @property
    def test_resources_dir(self) -> Path:
        return self.base_dir / "frontend" / "src" / "test" / "resources"

    @property
    def plugin_source_dir(self) -> Path:
        return self.base_dir / "integrations" / "sbt-bloop" / "src" / "main"

    @staticmethod
    def project_cache_dir(project_dir: Path) -> Path:
        return Path(project_dir) / "target" / "generation-cache-file"

    def clone_dir(self, repository_uri: str) -> Path:
        """Checkout location of a pinned repository reference inside staging."""
        return self.staging_root / sha256(repository_uri.encode("utf-8")).hexdigest()[:20]

    @property
    def clone_cache_dir(self) -> Path:
        return self.staging_root / "clone-cache"

    def to_json_dict(self) -> Dict[str, Any]:
        return {
            "base_dir": str(self.base_dir),
            "global_base": str(self.global_base),
            "staging_root": str(self.staging_root),
            "schema_version": self.schema_version,
            "integrations_cache_dir": str(self.integrations_cache_dir),
            "integrations_index": str(self.integrations_index),
        }


def resolve_staging(config: StagingConfig) -> StagingLayout:
    """Compute every location used by a run. Pure: nothing is created on disk."""
    if not config.base_dir:
        raise ConfigurationError(
            f"No base directory configured (pass --base-dir or set {ENV_BASE_DIR})"
        )
    if not config.schema_version:
        raise ConfigurationError("Schema version must not be empty")

    base = Path(config.base_dir).expanduser().absolute()
    global_base = Path(config.global_base).expanduser().absolute() if config.global_base else base / ".gencache"
    staging = Path(config.staging_dir).expanduser().absolute() if config.staging_dir else global_base / "staging"
    return StagingLayout(
        base_dir=base,
        global_base=global_base,
        staging_root=staging,
        schema_version=str(config.schema_version),
    )
