"""Generation pipeline: job model and the hash-gated orchestrator."""

from .models import GenerationJob, JobCommand, JobResult, JobStatus, RunReport, StalenessCheck
from .orchestrator import GenerationOrchestrator

__all__ = [
    "GenerationJob",
    "GenerationOrchestrator",
    "JobCommand",
    "JobResult",
    "JobStatus",
    "RunReport",
    "StalenessCheck",
]
