"""
GenCache: hash-gated regeneration of build configuration.

A job tracks a set of input files. When their fingerprint differs from the
last committed one, the job's external commands run in order and the new
fingerprint is committed only if all of them succeed.
"""

from .cache import CacheRecord, CacheStore, TrackedInputSet, fingerprint_inputs
from .core.errors import (
    CacheReadError,
    CommandFailure,
    CommitError,
    ConfigurationError,
    GenerationError,
    HashingError,
)
from .execution import CommandBuilder, CommandLine, ExternalInvoker, HostOS, detect_host_os
from .pipeline import GenerationJob, GenerationOrchestrator, JobCommand, JobResult, JobStatus, RunReport
from .staging import StagingConfig, StagingLayout, resolve_staging

__version__ = "0.1.0"
__all__ = [
    'CacheReadError', 'CacheRecord', 'CacheStore', 'CommandBuilder', 'CommandFailure',
    'CommandLine', 'CommitError', 'ConfigurationError', 'ExternalInvoker', 'GenerationError',
    'GenerationJob', 'GenerationOrchestrator', 'HashingError', 'HostOS', 'JobCommand',
    'JobResult', 'JobStatus', 'RunReport', 'StagingConfig', 'StagingLayout',
    'TrackedInputSet', 'detect_host_os', 'fingerprint_inputs', 'resolve_staging',
    '__version__'
]
