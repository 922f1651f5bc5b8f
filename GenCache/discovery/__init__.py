"""Discovery of the test projects that get their own generation job."""

from .discover import DiscoveryError, discover_project_dirs
from .models import BootstrapContext, DiscoveryResult

__all__ = ["BootstrapContext", "DiscoveryError", "DiscoveryResult", "discover_project_dirs"]
