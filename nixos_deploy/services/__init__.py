"""
nixos-deploy Service Layer

Services wrapping the external tools a deployment drives.
"""

from .ssh_service import SSHService, serialize_args
from .nix_service import NixService
from .transfer import (
    Transfer,
    RemoteBuildTransfer,
    LocalBuildTransfer,
    get_transfer,
)

__all__ = [
    "SSHService",
    "serialize_args",
    "NixService",
    "Transfer",
    "RemoteBuildTransfer",
    "LocalBuildTransfer",
    "get_transfer",
]
