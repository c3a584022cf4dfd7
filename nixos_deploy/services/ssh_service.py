"""SSH service for executing commands on the target host."""

import shlex
import time
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence

from nixos_deploy.constants import DEFAULT_REMOTE_HELPER
from nixos_deploy.exceptions import SSHError
from nixos_deploy.logger import DeployLogger
from nixos_deploy.models.results import SSHResult
from nixos_deploy.models.ssh import SSHConnection
from nixos_deploy.runner import CommandRunner


def serialize_args(args: Sequence[str]) -> str:
    """
    Quote an argument vector into one string for the remote shell.

    ssh joins its trailing arguments with spaces, which splits arguments
    containing whitespace. Each argument is quoted so that the remote shell
    rebuilds exactly the original vector: shlex.split(serialize_args(a)) == a.
    """
    return shlex.join(str(arg) for arg in args)


class SSHService:
    """Service for SSH operations over one multiplexed connection."""

    def __init__(
        self,
        connection: SSHConnection,
        runner: CommandRunner,
        remote_helper: str = DEFAULT_REMOTE_HELPER,
        logger: Optional[DeployLogger] = None,
    ):
        """
        Initialize SSH service.

        Args:
            connection: Target connection details
            runner: Command runner used for every ssh invocation
            remote_helper: Privilege escalation wrapper on the target
            logger: Optional deployment logger
        """
        self.connection = connection
        self.runner = runner
        self.remote_helper = remote_helper
        self.logger = logger

    @property
    def host(self) -> str:
        return self.connection.host

    def remote_command_line(self, args: Sequence[str]) -> str:
        """Build the single command string the remote shell evaluates."""
        return f"{self.remote_helper} {serialize_args(args)}"

    def execute(self, *args: str) -> SSHResult:
        """
        Execute command on the target through the privilege helper.

        Args:
            *args: Remote argument vector

        Returns:
            SSHResult with execution details

        Raises:
            SSHError: If the remote command (or ssh) exits non-zero
        """
        remote_command = self.remote_command_line(args)
        start_time = time.time()

        result = self.runner.run(
            self.connection.build_command(remote_command),
            error_cls=SSHError,
        )

        ssh_result = SSHResult(
            returncode=result.returncode,
            host=self.host,
            command=remote_command,
            duration_seconds=time.time() - start_time,
        )
        if self.logger:
            self.logger.log(f"Remote command finished in {ssh_result.duration_seconds:.1f}s: {remote_command}")
        return ssh_result

    def stream_into(self, producer: Sequence[str], remote_command: str) -> None:
        """
        Pipe a local command's output into a remote command.

        Uses ssh compression; the remote command runs without the helper.
        """
        consumer = self.connection.build_command(
            remote_command, extra_options=["-o", "Compression=yes"]
        )
        self.runner.pipe(producer, consumer, error_cls=SSHError)

    def close_master(self) -> None:
        """
        Stop the multiplex master process.

        Never raises: a failure here must not mask the original error.
        """
        if self.logger:
            self.logger.log("closing persistent ssh-connection")
        try:
            result = self.runner.run(self.connection.stop_command(), check=False)
            if result.is_failure and self.logger:
                self.logger.warning(
                    f"ssh -O stop exited with {result.returncode} (no master running?)"
                )
        except Exception as e:
            if self.logger:
                self.logger.warning(f"Could not close ssh control connection: {e}")

    @contextmanager
    def session(self) -> Iterator["SSHService"]:
        """
        Scope the multiplexed connection.

        The master is started lazily by the first ssh call (ControlMaster=auto)
        and is always stopped when the scope exits.
        """
        try:
            yield self
        finally:
            self.close_master()
