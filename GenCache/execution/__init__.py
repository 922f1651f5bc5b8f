"""External process execution for generation jobs."""

from .commands import BASH, GIT, SBT, CommandBuilder, CommandLine, HostOS, ToolLauncher, detect_host_os
from .models import ExecutionResult
from .runner import ExternalInvoker

__all__ = [
	"BASH",
	"CommandBuilder",
	"CommandLine",
	"ExecutionResult",
	"ExternalInvoker",
	"GIT",
	"HostOS",
	"SBT",
	"ToolLauncher",
	"detect_host_os",
]
