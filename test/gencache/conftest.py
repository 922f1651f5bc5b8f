from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterable, List, Mapping, Optional

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from GenCache.core.errors import CommandFailure
from GenCache.execution.commands import CommandLine
from GenCache.execution.models import ExecutionResult
from GenCache.execution.runner import ExternalInvoker


def python_command(code: str) -> CommandLine:
    return CommandLine(program=sys.executable, args=("-c", code))


class RecordingInvoker(ExternalInvoker):
    """Records every step label instead of spawning processes."""

    def __init__(self, failing: Iterable[str] = ()):
        super().__init__()
        self.failing = set(failing)
        self.calls: List[str] = []
        self.cwds: List[Path] = []

    def run(
        self,
        command: CommandLine,
        cwd: Path,
        *,
        label: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> ExecutionResult:
        name = label or command.program
        self.calls.append(name)
        self.cwds.append(Path(cwd))
        if name in self.failing:
            raise CommandFailure(label=name, argv=command.argv, cwd=cwd, exit_code=1)
        return ExecutionResult(label=name, command=command.argv, cwd=str(cwd), exit_code=0)


@pytest.fixture
def recording_invoker():
    return RecordingInvoker()


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path
