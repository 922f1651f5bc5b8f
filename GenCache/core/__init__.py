"""Shared errors and helpers for the generation cache."""

from .errors import (
    CacheReadError,
    CommandFailure,
    CommitError,
    ConfigurationError,
    GenerationError,
    HashingError,
)
from .utils import default_is_windows, setup_logging

__all__ = [
    "CacheReadError",
    "CommandFailure",
    "CommitError",
    "ConfigurationError",
    "GenerationError",
    "HashingError",
    "default_is_windows",
    "setup_logging",
]
