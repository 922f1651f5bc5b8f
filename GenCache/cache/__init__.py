"""Content fingerprints and the on-disk record store (hash-gated, atomic commits)."""

from .fingerprints import (
    ABSENT,
    EMPTY_FINGERPRINT,
    FileFingerprint,
    Fingerprint,
    TrackedInputSet,
    changed_inputs,
    fingerprint_inputs,
    fingerprint_snapshot,
    snapshot_inputs,
)
from .inputs import collect_files, plugin_source_files, project_input_files
from .store import CacheRecord, CacheStore, stable_key

__all__ = [
	"ABSENT",
	"CacheRecord",
	"CacheStore",
	"EMPTY_FINGERPRINT",
	"FileFingerprint",
	"Fingerprint",
	"TrackedInputSet",
	"changed_inputs",
	"collect_files",
	"fingerprint_inputs",
	"fingerprint_snapshot",
	"plugin_source_files",
	"project_input_files",
	"snapshot_inputs",
	"stable_key",
]
