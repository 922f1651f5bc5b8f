from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from ..core.utils import default_is_windows


class HostOS(str, Enum):
    POSIX = "posix"
    WINDOWS = "windows"


def detect_host_os(is_windows: Optional[Callable[[], bool]] = None) -> HostOS:
    predicate = is_windows or default_is_windows
    return HostOS.WINDOWS if predicate() else HostOS.POSIX


@dataclass(frozen=True)
class ToolLauncher:
    """How a tool is started on each host; only the argv prefix differs."""

    name: str
    posix: Tuple[str, ...]
    windows: Tuple[str, ...]

    def prefix(self, host: HostOS) -> Tuple[str, ...]:
        return self.windows if host is HostOS.WINDOWS else self.posix


SBT = ToolLauncher(name="sbt", posix=("sbt",), windows=("cmd.exe", "/C", "sbt.bat"))
BASH = ToolLauncher(name="bash", posix=("bash",), windows=("bash",))
GIT = ToolLauncher(name="git", posix=("git",), windows=("git",))


@dataclass(frozen=True)
class CommandLine:
    program: str
    args: Tuple[str, ...] = ()

    @property
    def argv(self) -> List[str]:
        return [self.program, *self.args]

    def __str__(self) -> str:
        return " ".join(self.argv)


@dataclass
class CommandBuilder:
    """Assembles a `CommandLine` for a launcher on a given host.

    Argument order is: launcher prefix, system properties, plain arguments,
    then tasks.
    """

    launcher: ToolLauncher
    host: HostOS = HostOS.POSIX
    _properties: List[str] = field(default_factory=list)
    _args: List[str] = field(default_factory=list)
    _tasks: List[str] = field(default_factory=list)

    def system_property(self, name: str, value: object) -> "CommandBuilder":
        if not name or "=" in name:
            raise ValueError(f"Invalid system property name: {name!r}")
        self._properties.append(f"-D{name}={value}")
        return self

    def arg(self, *values: object) -> "CommandBuilder":
        self._args.extend(str(v) for v in values)
        return self

    def tasks(self, names: Sequence[str]) -> "CommandBuilder":
        self._tasks.extend(str(n) for n in names)
        return self

    def build(self) -> CommandLine:
        prefix = self.launcher.prefix(self.host)
        return CommandLine(program=prefix[0], args=(*prefix[1:], *self._properties, *self._args, *self._tasks))
