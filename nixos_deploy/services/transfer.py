"""
Transfer strategies

How the system closure reaches the target: many small .drv objects
(export and build remotely) vs. fewer large outputs (build locally, copy).
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Type

from nixos_deploy.logger import DeployLogger
from nixos_deploy.models.config import DeployConfig, TransferStrategy
from nixos_deploy.services.nix_service import NixService


class Transfer(ABC):
    """Produces the system output path on the target host."""

    strategy: TransferStrategy

    def __init__(
        self,
        nix: NixService,
        logger: Optional[DeployLogger] = None,
        on_step: Optional[Callable[[str], None]] = None,
    ):
        self.nix = nix
        self.logger = logger
        self.on_step = on_step

    def _step(self, name: str) -> None:
        if self.on_step:
            self.on_step(name)
        elif self.logger:
            self.logger.step(name)

    def _success(self, message: str) -> None:
        if self.logger:
            self.logger.success(message)

    @abstractmethod
    def transfer(self, config: DeployConfig) -> str:
        """
        Make the system closure available on the target.

        Returns:
            Output path to activate
        """
        pass


class RemoteBuildTransfer(Transfer):
    """Upload the derivation closure and realize it on the target."""

    strategy = TransferStrategy.REMOTE_BUILD

    def transfer(self, config: DeployConfig) -> str:
        self._step("Uploading derivations")
        self.nix.export_to_target(config.drv_path)
        self._success(f"Derivations imported on {config.target_host}")

        self._step("Building on target")
        self.nix.realize_on_target(config.drv_path)
        self._success(f"Built {config.out_path}")

        return config.out_path


class LocalBuildTransfer(Transfer):
    """Realize on the deployer, then copy the output closure."""

    strategy = TransferStrategy.LOCAL_BUILD

    def transfer(self, config: DeployConfig) -> str:
        self._step("Building on deployer")
        out_path = self.nix.realize_locally(config.drv_path)
        self._success(f"Built {out_path}")

        self._step("Uploading build results")
        self.nix.copy_to_target(out_path)
        self._success(f"Copied closure to {config.target_host}")

        return out_path


TRANSFERS: Dict[TransferStrategy, Type[Transfer]] = {
    transfer.strategy: transfer for transfer in (RemoteBuildTransfer, LocalBuildTransfer)
}


def get_transfer(
    config: DeployConfig,
    nix: NixService,
    logger: Optional[DeployLogger] = None,
    on_step: Optional[Callable[[str], None]] = None,
) -> Transfer:
    """Select the transfer implementation for config.strategy."""
    return TRANSFERS[config.strategy](nix, logger=logger, on_step=on_step)
