"""
Result Models

Dataclass models for operation results and command outputs.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ResultStatus(Enum):
    """Status of an operation result."""

    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class ExecutionResult:
    """Result of a local command execution."""

    returncode: int
    stdout: str = ""
    command: str = ""

    @property
    def is_success(self) -> bool:
        """Check if execution succeeded."""
        return self.returncode == 0

    @property
    def is_failure(self) -> bool:
        """Check if execution failed."""
        return self.returncode != 0

    def __repr__(self) -> str:
        return f"ExecutionResult(returncode={self.returncode}, command='{self.command[:50]}...')"


@dataclass
class SSHResult:
    """Result of an SSH command execution."""

    returncode: int
    host: str = ""
    command: str = ""
    duration_seconds: float = 0.0

    @property
    def is_success(self) -> bool:
        """Check if SSH command succeeded."""
        return self.returncode == 0

    @property
    def is_failure(self) -> bool:
        """Check if SSH command failed."""
        return self.returncode != 0

    def __repr__(self) -> str:
        return f"SSHResult(host={self.host}, returncode={self.returncode}, duration={self.duration_seconds:.2f}s)"


@dataclass
class DeployResult:
    """Summary of a deployment run."""

    status: ResultStatus
    target_host: str
    action: str
    strategy: str
    out_path: Optional[str] = None
    garbage_collected: bool = False
    steps: list[str] = field(default_factory=list)
    error: Optional[str] = None
    exit_code: int = 0

    @property
    def is_success(self) -> bool:
        return self.status == ResultStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for --json output."""
        data: Dict[str, Any] = {
            "status": self.status.value,
            "target_host": self.target_host,
            "action": self.action,
            "strategy": self.strategy,
            "out_path": self.out_path,
            "garbage_collected": self.garbage_collected,
            "steps": list(self.steps),
        }
        if self.error:
            data["error"] = self.error
            data["exit_code"] = self.exit_code
        return data
