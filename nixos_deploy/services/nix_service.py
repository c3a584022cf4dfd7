"""Nix store and profile operations, local and on the target host."""

from typing import Optional

from nixos_deploy.constants import SWITCH_TO_CONFIGURATION
from nixos_deploy.exceptions import BuildError
from nixos_deploy.logger import DeployLogger
from nixos_deploy.models.config import DeployConfig
from nixos_deploy.runner import CommandRunner
from nixos_deploy.services.ssh_service import SSHService


class NixService:
    """Wraps nix-store, nix-copy-closure and nix-env invocations."""

    def __init__(
        self,
        config: DeployConfig,
        runner: CommandRunner,
        ssh: SSHService,
        logger: Optional[DeployLogger] = None,
    ):
        self.config = config
        self.runner = runner
        self.ssh = ssh
        self.logger = logger

    # Local store

    def query_requisites(self, path: str) -> list[str]:
        """Return the closure of path (path plus all transitive dependencies)."""
        result = self.runner.run(
            ["nix-store", "--query", "--requisites", path],
            capture_output=True,
            error_cls=BuildError,
        )
        return result.stdout.split()

    def realize_locally(self, drv_path: str) -> str:
        """
        Build drv_path on the deployer.

        Returns:
            The output path printed by nix-store
        """
        result = self.runner.run(
            ["nix-store", "--realize", drv_path, *self.config.build_args],
            capture_output=True,
            error_cls=BuildError,
        )
        out_path = result.stdout.strip()
        if not out_path:
            raise BuildError(
                ["nix-store", "--realize", drv_path],
                1,
                "nix-store --realize printed no output path",
            )
        return out_path

    # Transfers

    def export_to_target(self, path: str) -> None:
        """
        Copy a closure with nix-store --export/--import over ssh.

        Fewer round-trips than nix-copy-closure; suits many small objects
        such as .drv files.
        """
        requisites = self.query_requisites(path)
        self.ssh.stream_into(["nix-store", "--export", *requisites], "nix-store --import")

    def copy_to_target(self, path: str) -> None:
        """
        Copy a closure with nix-copy-closure.

        Skips store objects already present on the target; suits large
        build outputs.
        """
        self.runner.run(
            [
                "nix-copy-closure",
                "--to",
                self.ssh.host,
                path,
                "--gzip",
                "--use-substitutes",
            ],
            env={"NIX_SSHOPTS": self.ssh.connection.nix_sshopts},
            error_cls=BuildError,
        )

    # Target host

    def realize_on_target(self, drv_path: str) -> None:
        self.ssh.execute("nix-store", "--realize", drv_path, *self.config.build_args)

    def set_profile(self, out_path: str) -> None:
        self.ssh.execute("nix-env", "--profile", self.config.profile, "--set", out_path)

    def switch_to_configuration(self, out_path: str, action: str) -> None:
        self.ssh.execute(f"{out_path.rstrip('/')}/{SWITCH_TO_CONFIGURATION}", action)

    def delete_generations(self) -> None:
        # Tokens are passed unquoted-style so "1 2 3" selects three generations
        self.ssh.execute(
            "nix-env",
            "--profile",
            self.config.profile,
            "--delete-generations",
            *self.config.retention_tokens,
        )

    def collect_garbage(self) -> None:
        self.ssh.execute("nix-store", "--gc")
