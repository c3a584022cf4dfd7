"""
SSH Configuration Models

Dataclass models for SSH operations.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from nixos_deploy.constants import SSH_BASE_OPTIONS


@dataclass(frozen=True)
class SSHConnection:
    """SSH connection details for the target host."""

    host: str
    port: int = 22
    identity_file: Optional[Path] = None
    control_path: Optional[Path] = None
    verbose: bool = True

    @property
    def options(self) -> list[str]:
        """Get ssh options shared by every invocation (without the host)."""
        opts: list[str] = []
        for option in SSH_BASE_OPTIONS:
            opts.extend(["-o", option])

        # verbose output for easier debugging
        if self.verbose:
            opts.append("-v")

        opts.extend(["-p", str(self.port)])

        if self.identity_file is not None:
            opts.extend(["-o", f"IdentityFile={self.identity_file}"])

        if self.control_path is not None:
            opts.extend(["-o", f"ControlPath={self.control_path}"])

        return opts

    @property
    def nix_sshopts(self) -> str:
        """Get options in the space-separated form nix reads from NIX_SSHOPTS."""
        return " ".join(self.options)

    def build_command(self, remote_command: str, extra_options: Optional[list[str]] = None) -> list[str]:
        """Build full ssh argv running remote_command on the host."""
        return ["ssh", *(extra_options or []), *self.options, self.host, remote_command]

    def stop_command(self) -> list[str]:
        """Build argv asking the multiplex master to exit."""
        return ["ssh", *self.options, "-O", "stop", self.host]

    def __repr__(self) -> str:
        return f"SSHConnection(host={self.host}, port={self.port})"
