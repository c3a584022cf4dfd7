"""
Base Command Class

Abstract base for nixos-deploy commands.
Provides common functionality and structure.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console
from rich.markup import escape

from nixos_deploy.constants import EXIT_FAILURE, EXIT_INTERRUPTED
from nixos_deploy.exceptions import NixosDeployError
from nixos_deploy.logger import DeployLogger
from nixos_deploy.ui_components import show_header


class BaseCommand(ABC):
    """
    Abstract base command class.

    Provides:
    - Logger initialization
    - Header display
    - Error handling and exit codes
    - JSON output support
    """

    def __init__(self, verbose: bool = False, json_output: bool = False):
        self.verbose = verbose
        self.json_output = json_output
        self.console = Console(stderr=True)
        self.logger: Optional[DeployLogger] = None

    def init_logger(
        self, log_dir: Path, target_host: str, operation: str
    ) -> Optional[DeployLogger]:
        """
        Initialize command logger (skip in JSON mode).

        Args:
            log_dir: Root log directory
            target_host: Target host name
            operation: Operation name

        Returns:
            DeployLogger instance or None if JSON mode
        """
        if self.json_output:
            return None
        self.logger = DeployLogger(log_dir, target_host, operation, verbose=self.verbose)
        return self.logger

    def output_json(self, data: Dict[str, Any]) -> None:
        """Print data as JSON on stdout."""
        print(json.dumps(data, indent=2))

    def show_header(
        self,
        title: str,
        host: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Show command header (skip in JSON or verbose mode)."""
        if not self.verbose and not self.json_output:
            show_header(title=title, host=host, details=details, console=self.console)

    def print_success(self, message: str) -> None:
        """Print success message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[green]✓ {escape(message)}[/green]")

    def print_error(self, message: str) -> None:
        """Print error message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[red]✗ {escape(message)}[/red]")

    def print_dim(self, message: str) -> None:
        """Print dim message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[dim]{escape(message)}[/dim]")

    def handle_error(self, message: str, context: Optional[str] = None, exit_code: int = EXIT_FAILURE) -> None:
        """
        Report an error with consistent formatting.

        Args:
            message: Error message
            context: Optional context message
            exit_code: Exit code the run will end with
        """
        if self.json_output:
            self.output_json(self.error_payload(message, context, exit_code))
        elif self.logger:
            self.logger.log_error(message, context=context)
            self.print_dim(f"Logs saved to: {self.logger.log_path}")
        else:
            self.print_error(message)
            if context:
                self.print_dim(f"Context: {context}")

    def error_payload(self, message: str, context: Optional[str], exit_code: int) -> Dict[str, Any]:
        """JSON document emitted on failure; subclasses may enrich it."""
        data: Dict[str, Any] = {"error": message, "exit_code": exit_code}
        if context:
            data["details"] = context
        return data

    @abstractmethod
    def execute(self) -> None:
        """
        Execute command logic.

        Must be implemented by subclasses.
        """
        pass

    def run(self) -> None:
        """Run command with error handling and exit code mapping."""
        try:
            self.execute()
        except KeyboardInterrupt:
            self.handle_error("Operation cancelled by user", exit_code=EXIT_INTERRUPTED)
            raise SystemExit(EXIT_INTERRUPTED)
        except SystemExit as e:
            # Raised by the termination signal handler
            if e.code:
                self.handle_error(f"Terminated (exit {e.code})", exit_code=e.code)
            raise
        except NixosDeployError as e:
            self.handle_error(e.message, e.context, exit_code=e.exit_code)
            raise SystemExit(e.exit_code)
        except OSError as e:
            self.handle_error(f"{type(e).__name__}: {e}")
            raise SystemExit(EXIT_FAILURE)
        finally:
            if self.logger:
                self.logger.close()
