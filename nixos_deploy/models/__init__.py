"""
nixos-deploy Data Models

Dataclass-based models for type safety and validation.
"""

from .config import DeployConfig, TransferStrategy, parse_flag
from .ssh import SSHConnection
from .results import ExecutionResult, SSHResult, DeployResult, ResultStatus

__all__ = [
    "DeployConfig",
    "TransferStrategy",
    "parse_flag",
    "SSHConnection",
    "ExecutionResult",
    "SSHResult",
    "DeployResult",
    "ResultStatus",
]
