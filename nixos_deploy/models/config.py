"""
Deployment Configuration Models

Immutable configuration built once from the command line and passed
explicitly to every deployment step.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from nixos_deploy.constants import (
    DEFAULT_BINARY_CACHE,
    DEFAULT_REMOTE_HELPER,
    DEFAULT_SYSTEM_PROFILE,
    NO_KEY_VALUES,
    TRUE_VALUE,
)


class TransferStrategy(Enum):
    """How the system closure reaches the target host."""

    # Export the .drv closure and realize on the target
    REMOTE_BUILD = "remote-build"
    # Realize on the deployer and copy the output closure
    LOCAL_BUILD = "local-build"


def parse_flag(value: Optional[str], default: bool) -> bool:
    """
    Parse a boolean positional argument.

    Only the literal "true" is truthy; an empty value falls back to default.
    """
    if not value:
        return default
    return value == TRUE_VALUE


def default_build_args(binary_cache: str = DEFAULT_BINARY_CACHE) -> tuple[str, ...]:
    """Build arguments prepended to every realize call."""
    return ("--option", "extra-binary-caches", binary_cache)


@dataclass(frozen=True)
class DeployConfig:
    """Everything a single deployment run needs."""

    drv_path: str
    out_path: str
    target_host: str
    target_port: int
    strategy: TransferStrategy
    action: str
    delete_older_than: str = ""
    run_garbage_collection: bool = True
    ssh_private_key: Optional[str] = field(default=None, repr=False)
    build_args: tuple[str, ...] = field(default_factory=default_build_args)
    profile: str = DEFAULT_SYSTEM_PROFILE
    remote_helper: str = DEFAULT_REMOTE_HELPER

    @classmethod
    def from_arguments(
        cls,
        drv_path: str,
        out_path: str,
        target_host: str,
        target_port: int,
        build_on_target: str,
        ssh_private_key: str,
        action: str,
        delete_older_than: str,
        run_garbage_collection: str,
        extra_build_args: Sequence[str] = (),
        binary_cache: str = DEFAULT_BINARY_CACHE,
        profile: str = DEFAULT_SYSTEM_PROFILE,
        remote_helper: str = DEFAULT_REMOTE_HELPER,
    ) -> "DeployConfig":
        """
        Build config from the nine positional values.

        Args:
            extra_build_args: Trailing build options, sentinel already removed
        """
        strategy = (
            TransferStrategy.REMOTE_BUILD
            if parse_flag(build_on_target, default=False)
            else TransferStrategy.LOCAL_BUILD
        )
        key = None if ssh_private_key in NO_KEY_VALUES else ssh_private_key

        return cls(
            drv_path=drv_path,
            out_path=out_path,
            target_host=target_host,
            target_port=int(target_port),
            strategy=strategy,
            action=action,
            delete_older_than=delete_older_than,
            run_garbage_collection=parse_flag(run_garbage_collection, default=True),
            ssh_private_key=key,
            build_args=default_build_args(binary_cache) + tuple(extra_build_args),
            profile=profile,
            remote_helper=remote_helper,
        )

    @property
    def has_private_key(self) -> bool:
        return self.ssh_private_key is not None

    @property
    def retention_tokens(self) -> list[str]:
        """
        Generation selectors for nix-env --delete-generations.

        Split on whitespace so "1 2 3" selects three generations; no glob
        or variable expansion is performed.
        """
        return self.delete_older_than.split()

    def __repr__(self) -> str:
        return (
            f"DeployConfig(host={self.target_host}:{self.target_port}, "
            f"strategy={self.strategy.value}, action={self.action})"
        )
