"""
Command Runner

Single seam through which every external program is executed.
Fail-fast: a non-zero exit raises immediately.
"""

import os
import shlex
import subprocess
from typing import Dict, Optional, Sequence, Type

from nixos_deploy.exceptions import CommandError
from nixos_deploy.logger import DeployLogger
from nixos_deploy.models.results import ExecutionResult

# Shell convention for "command not found"
EXIT_NOT_FOUND = 127

STDERR_FILENO = 2


class CommandRunner:
    """Runs local processes, logging each command line."""

    def __init__(self, logger: Optional[DeployLogger] = None, stdout_to_stderr: bool = False):
        """
        Args:
            logger: Optional deployment logger
            stdout_to_stderr: Send uncaptured child stdout to stderr, keeping
                our own stdout clean for --json
        """
        self.logger = logger
        self.stdout_to_stderr = stdout_to_stderr

    @property
    def child_stdout(self) -> Optional[int]:
        """stdout target for children whose output is not captured."""
        return STDERR_FILENO if self.stdout_to_stderr else None

    def _log(self, argv: Sequence[str], env: Optional[Dict[str, str]] = None) -> str:
        command = shlex.join(argv)
        if self.logger:
            if env:
                assignments = " ".join(f"{k}={shlex.quote(v)}" for k, v in env.items())
                self.logger.log_command(f"{assignments} {command}")
            else:
                self.logger.log_command(command)
        return command

    def run(
        self,
        argv: Sequence[str],
        env: Optional[Dict[str, str]] = None,
        capture_output: bool = False,
        check: bool = True,
        error_cls: Type[CommandError] = CommandError,
    ) -> ExecutionResult:
        """
        Run a command to completion.

        stderr is never captured so the tool's own diagnostics reach the user.

        Args:
            argv: Program and arguments
            env: Extra environment variables
            capture_output: Capture stdout and return it
            check: Raise error_cls on non-zero exit
            error_cls: CommandError subclass to raise

        Returns:
            ExecutionResult with return code and captured stdout
        """
        command = self._log(argv, env)

        try:
            result = subprocess.run(
                list(argv),
                env={**os.environ, **env} if env else None,
                stdout=subprocess.PIPE if capture_output else self.child_stdout,
                text=True,
            )
        except FileNotFoundError:
            if check:
                raise error_cls(argv, EXIT_NOT_FOUND, f"Command not found: {argv[0]}")
            return ExecutionResult(returncode=EXIT_NOT_FOUND, command=command)

        stdout = result.stdout or ""
        if self.logger and stdout:
            self.logger.log_output(stdout)

        if check and result.returncode != 0:
            raise error_cls(argv, result.returncode)

        return ExecutionResult(returncode=result.returncode, stdout=stdout, command=command)

    def pipe(
        self,
        producer: Sequence[str],
        consumer: Sequence[str],
        error_cls: Type[CommandError] = CommandError,
    ) -> None:
        """
        Stream producer's stdout into consumer's stdin.

        Both processes must succeed; the rightmost failure is reported.
        """
        self._log(producer)
        self._log(consumer)

        try:
            upstream = subprocess.Popen(list(producer), stdout=subprocess.PIPE)
        except FileNotFoundError:
            raise error_cls(producer, EXIT_NOT_FOUND, f"Command not found: {producer[0]}")

        try:
            downstream = subprocess.Popen(
                list(consumer), stdin=upstream.stdout, stdout=self.child_stdout
            )
        except FileNotFoundError:
            upstream.kill()
            upstream.wait()
            raise error_cls(consumer, EXIT_NOT_FOUND, f"Command not found: {consumer[0]}")
        finally:
            # Consumer owns the read end now
            upstream.stdout.close()

        try:
            downstream_code = downstream.wait()
            upstream_code = upstream.wait()
        except BaseException:
            # Interrupted (signal, Ctrl-C): neither end may outlive the run
            for process in (upstream, downstream):
                process.kill()
                process.wait()
            raise

        if downstream_code != 0:
            raise error_cls(consumer, downstream_code)
        if upstream_code != 0:
            raise error_cls(producer, upstream_code)
