"""
Deploy Command

Ship a NixOS system derivation to a target host, activate it and
optionally prune old generations.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import click
from rich_click import RichCommand

from nixos_deploy.base import BaseCommand
from nixos_deploy.constants import SSH_CONTROL_SOCKET_NAME
from nixos_deploy.logger import DeployLogger
from nixos_deploy.models import DeployConfig, DeployResult, ResultStatus, SSHConnection
from nixos_deploy.runner import CommandRunner
from nixos_deploy.services import NixService, SSHService, get_transfer
from nixos_deploy.settings import Settings, load_settings
from nixos_deploy.workdir import exit_on_signals, provision_key, scoped_workdir


@dataclass
class DeployOptions:
    """Raw positional values as received on the command line."""

    drv_path: str
    out_path: str
    target_host: str
    target_port: int
    build_on_target: str
    ssh_private_key: str
    action: str
    delete_older_than: str
    run_garbage_collection: str
    extra_build_args: tuple[str, ...] = field(default_factory=tuple)

    def __repr__(self) -> str:
        # Never show key material
        return f"DeployOptions(drv={self.drv_path}, host={self.target_host}:{self.target_port})"


class DeployCommand(BaseCommand):
    """
    Deploy a system closure to one host.

    Steps: key provisioning, ssh session, transfer (remote or local build),
    activation, optional garbage collection, session close (always).
    """

    def __init__(
        self,
        options: DeployOptions,
        verbose: bool = False,
        json_output: bool = False,
        settings: Optional[Settings] = None,
        runner_factory: Callable[..., CommandRunner] = CommandRunner,
    ):
        """
        Initialize deploy command.

        Args:
            options: DeployOptions parsed from the command line
            verbose: Whether to echo every command
            json_output: Whether to emit a JSON summary
            settings: Pre-loaded settings (loaded from the environment if None)
            runner_factory: Builds the command runner for the run
        """
        super().__init__(verbose=verbose, json_output=json_output)
        self.options = options
        self.settings = settings
        self.runner_factory = runner_factory
        self.config: Optional[DeployConfig] = None
        self.result: Optional[DeployResult] = None

    def build_config(self, settings: Settings) -> DeployConfig:
        opts = self.options
        return DeployConfig.from_arguments(
            drv_path=opts.drv_path,
            out_path=opts.out_path,
            target_host=opts.target_host,
            target_port=opts.target_port,
            build_on_target=opts.build_on_target,
            ssh_private_key=opts.ssh_private_key,
            action=opts.action,
            delete_older_than=opts.delete_older_than,
            run_garbage_collection=opts.run_garbage_collection,
            extra_build_args=opts.extra_build_args,
            binary_cache=settings.binary_cache,
            profile=settings.profile,
            remote_helper=settings.remote_helper,
        )

    def _step(self, name: str) -> None:
        if self.result is not None:
            self.result.steps.append(name)
        if self.logger:
            self.logger.step(name)

    def _success(self, message: str) -> None:
        if self.logger:
            self.logger.success(message)

    def execute(self) -> None:
        """Execute deployment."""
        settings = self.settings or load_settings()
        config = self.build_config(settings)
        self.config = config

        self.show_header(
            title="Deploy NixOS System",
            host=f"{config.target_host}:{config.target_port}",
            details={"Action": config.action, "Strategy": config.strategy.value},
        )

        logger = self.init_logger(settings.log_dir, config.target_host, config.action)
        if logger:
            logger.log(f"Configuration: {config!r}")

        self.result = DeployResult(
            status=ResultStatus.FAILURE,
            target_host=config.target_host,
            action=config.action,
            strategy=config.strategy.value,
        )

        with exit_on_signals(), scoped_workdir() as workdir:
            if config.has_private_key:
                self._step("Provisioning SSH key")
            key_path = provision_key(workdir, config.ssh_private_key)
            if key_path:
                self._success("Private key written with owner-only permissions")
            elif logger:
                logger.log("No private key supplied, using ambient ssh credentials")

            connection = SSHConnection(
                host=config.target_host,
                port=config.target_port,
                identity_file=key_path,
                control_path=workdir / SSH_CONTROL_SOCKET_NAME,
                verbose=settings.ssh_verbose,
            )
            runner = self.runner_factory(logger, stdout_to_stderr=self.json_output)
            ssh = SSHService(connection, runner, remote_helper=config.remote_helper, logger=logger)
            nix = NixService(config, runner, ssh, logger=logger)

            with ssh.session():
                transfer = get_transfer(config, nix, logger=logger, on_step=self._step)
                out_path = transfer.transfer(config)
                self.result.out_path = out_path

                self.activate(nix, config, out_path)

                if config.run_garbage_collection:
                    self.collect_garbage(nix, config)

        self.result.status = ResultStatus.SUCCESS
        self._print_summary()

    def activate(self, nix: NixService, config: DeployConfig, out_path: str) -> None:
        """Point the system profile at out_path and run its activation script."""
        self._step("Activating configuration")
        nix.set_profile(out_path)
        self._success(f"{config.profile} -> {out_path}")

        nix.switch_to_configuration(out_path, config.action)
        self._success(f"switch-to-configuration {config.action}")

    def collect_garbage(self, nix: NixService, config: DeployConfig) -> None:
        """Delete old generations, then run a store-wide GC on the target."""
        self._step("Collecting old nix derivations")
        nix.delete_generations()
        self._success(f"Deleted generations: {config.delete_older_than}")

        nix.collect_garbage()
        self._success("nix-store --gc finished")
        self.result.garbage_collected = True

    def error_payload(self, message: str, context: Optional[str], exit_code: int) -> Dict[str, Any]:
        if self.result is None:
            return super().error_payload(message, context, exit_code)
        self.result.error = message
        self.result.exit_code = exit_code
        return self.result.to_dict()

    def _print_summary(self) -> None:
        """Print deployment summary."""
        if self.json_output:
            self.output_json(self.result.to_dict())
            return

        self.console.print()
        self.print_success(f"Deployed {self.result.out_path} to {self.result.target_host}")
        if self.logger:
            self.print_dim(f"Logs saved to: {self.logger.log_path}")


@click.command(
    cls=RichCommand,
    context_settings={
        # Everything after the first positional belongs to the deployment
        "allow_interspersed_args": False,
        "ignore_unknown_options": True,
        "help_option_names": ["-h", "--help"],
    },
)
@click.option(
    "--verbose", "-v", is_flag=True, envvar="NIXOS_DEPLOY_VERBOSE", help="Show every command executed"
)
@click.option(
    "--json", "json_output", is_flag=True, envvar="NIXOS_DEPLOY_JSON", help="Output a JSON summary"
)
@click.argument("drv_path")
@click.argument("out_path")
@click.argument("target_host")
@click.argument("target_port", type=int)
@click.argument("build_on_target")
@click.argument("ssh_private_key")
@click.argument("action")
@click.argument("delete_older_than")
@click.argument("run_garbage_collection")
@click.argument("build_opts", nargs=-1, type=click.UNPROCESSED)
def deploy(
    verbose,
    json_output,
    drv_path,
    out_path,
    target_host,
    target_port,
    build_on_target,
    ssh_private_key,
    action,
    delete_older_than,
    run_garbage_collection,
    build_opts,
):
    """
    Deploy a nixos-instantiate generated drvPath to a target host

    SSH_PRIVATE_KEY may be "-" or empty to use ambient ssh credentials.
    BUILD_OPTS are passed verbatim to nix-store --realize; the last
    argument is a required placeholder and is always discarded.

    Examples:
        nixos-deploy /nix/store/...-nixos.drv /nix/store/...-nixos \\
            10.0.0.5 22 false - switch 30d true ignoreme

        # Build on the target, keep generations 1 2 3 only
        nixos-deploy /nix/store/...-nixos.drv /nix/store/...-nixos \\
            host.example 2222 true "$KEY" boot "1 2 3" true \\
            --option cores 4 ignoreme
    """
    if not build_opts:
        raise click.UsageError("Missing trailing placeholder argument after build options")

    options = DeployOptions(
        drv_path=drv_path,
        out_path=out_path,
        target_host=target_host,
        target_port=target_port,
        build_on_target=build_on_target,
        ssh_private_key=ssh_private_key,
        action=action,
        delete_older_than=delete_older_than,
        run_garbage_collection=run_garbage_collection,
        extra_build_args=tuple(build_opts[:-1]),
    )
    cmd = DeployCommand(
        options,
        verbose=verbose,
        json_output=json_output,
        runner_factory=CommandRunner,
    )
    cmd.run()
