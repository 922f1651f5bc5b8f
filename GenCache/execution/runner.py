from __future__ import annotations

import logging
import os
import subprocess
import time
from pathlib import Path
from typing import Mapping, Optional

from ..core.errors import CommandFailure
from .commands import CommandLine
from .models import ExecutionResult


class ExternalInvoker:
    """Runs one external command to completion and checks its exit status.

    There is no timeout and no retry: the caller blocks until the child exits.
    A non-zero exit raises `CommandFailure`.
    """

    def __init__(self, *, capture_output: bool = False, logger: Optional[logging.Logger] = None):
        self.capture_output = bool(capture_output)
        self._logger = logger or logging.getLogger(__name__)

    def run(
        self,
        command: CommandLine,
        cwd: Path,
        *,
        label: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> ExecutionResult:
        name = label or command.program
        argv = command.argv
        # Only what the job declares is layered on top of the inherited environment.
        child_env = {**os.environ, **env} if env else None

        self._logger.debug(f"Running {name}: {command} (cwd={cwd})")
        started = time.monotonic()
        try:
            proc = subprocess.run(
                argv,
                cwd=str(cwd),
                env=child_env,
                capture_output=self.capture_output,
                text=True if self.capture_output else None,
                check=False,
            )
        except OSError as exc:
            raise CommandFailure(label=name, argv=argv, cwd=cwd, exit_code=None, reason=str(exc)) from exc

        result = ExecutionResult(
            label=name,
            command=argv,
            cwd=str(cwd),
            exit_code=int(proc.returncode),
            duration_seconds=time.monotonic() - started,
            stdout=proc.stdout if self.capture_output else None,
            stderr=proc.stderr if self.capture_output else None,
        )
        if not result.ok:
            raise CommandFailure(label=name, argv=argv, cwd=cwd, exit_code=result.exit_code)
        return result
