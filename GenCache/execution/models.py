from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ExecutionResult:
    label: str
    command: List[str]
    cwd: str
    exit_code: Optional[int]
    duration_seconds: float = 0.0
    stdout: Optional[str] = None
    stderr: Optional[str] = None

    def to_json_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def ok(self) -> bool:
        return self.exit_code == 0
