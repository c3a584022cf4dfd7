"""
Logging system for nixos-deploy
Provides real-time logging to files with clean console output
"""

import re
from datetime import datetime
from pathlib import Path
from typing import Optional, TextIO

from rich.console import Console
from rich.markup import escape

from nixos_deploy.constants import LOG_DATE_FORMAT, LOG_TIME_FORMAT

# Diagnostics go to stderr, stdout stays free for --json and tool output
console = Console(stderr=True)

ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


class DeployLogger:
    """
    Manages logging for a deployment run
    - Writes all steps and commands to a log file in real-time
    - Shows clean progress UI in console
    - Captures errors with context
    """

    def __init__(self, log_dir: Path, target_host: str, operation: str, verbose: bool = False):
        """
        Initialize logger

        Args:
            log_dir: Root directory for log files
            target_host: Host being deployed to
            operation: Operation name (the activation action, e.g. 'switch')
            verbose: If True, echo every command in console
        """
        self.target_host = target_host
        self.operation = operation
        self.verbose = verbose
        self.log_file: Optional[TextIO] = None
        self.log_path: Optional[Path] = None
        self.has_errors = False

        # Structure: {log_dir}/{host}/{date}/{time}_{operation}.log
        now = datetime.now()
        host_logs_dir = log_dir / _safe_name(target_host) / now.strftime(LOG_DATE_FORMAT)
        host_logs_dir.mkdir(parents=True, exist_ok=True)

        self.log_path = host_logs_dir / f"{now.strftime(LOG_TIME_FORMAT)}_{_safe_name(operation)}.log"

        # Line buffered for real-time tailing
        self.log_file = open(self.log_path, "w", buffering=1)

        self._write_log_header()

    def _write_log_header(self):
        """Write log file header"""
        header = f"""
{"=" * 80}
nixos-deploy Log
{"=" * 80}
Target: {self.target_host}
Operation: {self.operation}
Started: {datetime.now().isoformat()}
{"=" * 80}

"""
        self.log_file.write(header)
        self.log_file.flush()

    def log(self, message: str, level: str = "INFO"):
        """
        Log a message to file and optionally console

        Args:
            message: Message to log
            level: Log level (INFO, WARNING, ERROR, DEBUG)
        """
        timestamp = datetime.now().strftime("%H:%M:%S")

        if self.log_file:
            self.log_file.write(f"[{timestamp}] [{level}] {message}\n")
            self.log_file.flush()

        if self.verbose:
            if level == "ERROR":
                console.print(f"[red]{escape(message)}[/red]")
            elif level == "WARNING":
                console.print(f"[yellow]{escape(message)}[/yellow]")
            elif level == "DEBUG":
                console.print(f"[dim]{escape(message)}[/dim]")
            else:
                console.print(escape(message))

    def log_command(self, command: str):
        """Log a command being executed"""
        self.log(f"Executing: {command}", "DEBUG")

    def log_output(self, output: str, stream: str = "stdout"):
        """
        Log captured command output to the log file only

        Args:
            output: Command output (single line or multiline)
            stream: Stream name (stdout, stderr)
        """
        if not output or not self.log_file:
            return

        for line in ANSI_ESCAPE.sub("", output).splitlines():
            self.log_file.write(f"  [{stream}] {line}\n")
        self.log_file.flush()

    def log_error(self, error: str, context: Optional[str] = None):
        """
        Log an error with context

        Args:
            error: Error message
            context: Additional context (e.g., command that failed)
        """
        self.has_errors = True

        error_block = f"""
{"!" * 80}
ERROR OCCURRED
{"!" * 80}
{error}
"""
        if context:
            error_block += f"\nContext: {context}\n"

        error_block += f"{'!' * 80}\n\n"

        if self.log_file:
            self.log_file.write(error_block)
            self.log_file.flush()

        console.print()
        console.print(f"[bold red]✗ {escape(error)}[/bold red]")
        if context:
            console.print(f"  [color(208)]{escape(context)}[/color(208)]")

    def step(self, step_name: str):
        """
        Start a new step

        Args:
            step_name: Name of the step
        """
        self.log(f"Step: {step_name}", "INFO")

        if not self.verbose:
            console.print(f"[color(214)]▶[/color(214)] [white]{escape(step_name)}[/white]")

    def success(self, message: str):
        """Log a success message"""
        self.log(message, "INFO")

        if not self.verbose:
            console.print(f"  [dim]✓ {escape(message)}[/dim]")

    def warning(self, message: str):
        """Log a warning message"""
        self.log(message, "WARNING")

        if not self.verbose:
            console.print(f"  [yellow]⚠[/yellow] [dim]{escape(message)}[/dim]")

    def close(self):
        """Close log file"""
        if self.log_file:
            footer = f"""
{"=" * 80}
Completed: {datetime.now().isoformat()}
Status: {"FAILED" if self.has_errors else "SUCCESS"}
{"=" * 80}
"""
            self.log_file.write(footer)
            self.log_file.close()
            self.log_file = None


def _safe_name(value: str) -> str:
    """Make a value usable as a single path component."""
    return re.sub(r"[^A-Za-z0-9._@-]", "_", value) or "_"
