import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from nixos_deploy.commands.deploy import DeployCommand, DeployOptions
from nixos_deploy.exceptions import CommandError
from nixos_deploy.models.results import ExecutionResult
from nixos_deploy.runner import CommandRunner
from nixos_deploy.settings import Settings

DRV = "/nix/store/aaaa-nixos-system.drv"
OUT = "/nix/store/bbbb-nixos-system"
HOST = "deploy@10.0.0.5"
DEFAULT_BUILD_ARGS = ["--option", "extra-binary-caches", "https://cache.nixos.org/"]


@dataclass
class Call:
    kind: str
    argv: List[str]
    env: Optional[Dict[str, str]] = None
    producer: Optional[List[str]] = None


def describe(call: Call) -> tuple:
    """Reduce a recorded call to a comparable tuple."""
    if call.kind == "pipe":
        return ("pipe", call.producer[:2], shlex.split(call.argv[-1]))
    if call.argv[0] == "ssh":
        if "-O" in call.argv:
            return ("ssh-stop",)
        remote = shlex.split(call.argv[-1])
        return ("remote", *remote[1:])
    return ("local", *call.argv)


def control_dir(call: Call) -> Path:
    """Workdir holding the control socket referenced by an ssh call."""
    argv = call.argv
    for option in argv:
        if option.startswith("ControlPath="):
            return Path(option.split("=", 1)[1]).parent
    raise AssertionError(f"no ControlPath in {argv}")


class FakeRunner(CommandRunner):
    """Records commands instead of executing them."""

    def __init__(self, logger=None):
        super().__init__(logger)
        self.calls: List[Call] = []
        self.failures: Dict[str, int] = {}
        self.hooks: List[Callable[[Call], None]] = []
        self.realized_path = OUT
        self.requisites = ["/nix/store/cccc-dep.drv", DRV]

    def fail_when(self, needle: str, returncode: int) -> None:
        """Fail any command whose rendered line contains needle."""
        self.failures[needle] = returncode

    def _returncode(self, argv) -> int:
        line = " ".join(argv)
        for needle, code in self.failures.items():
            if needle in line:
                return code
        return 0

    def _record(self, call: Call) -> None:
        self.calls.append(call)
        for hook in self.hooks:
            hook(call)

    def run(self, argv, env=None, capture_output=False, check=True, error_cls=CommandError):
        argv = list(argv)
        self._record(Call("run", argv, env))

        stdout = ""
        if capture_output and argv[:2] == ["nix-store", "--realize"]:
            stdout = self.realized_path + "\n"
        elif capture_output and argv[:3] == ["nix-store", "--query", "--requisites"]:
            stdout = "\n".join(self.requisites) + "\n"

        returncode = self._returncode(argv)
        if check and returncode:
            raise error_cls(argv, returncode)
        return ExecutionResult(returncode=returncode, stdout=stdout, command=shlex.join(argv))

    def pipe(self, producer, consumer, error_cls=CommandError):
        self._record(Call("pipe", list(consumer), producer=list(producer)))
        returncode = self._returncode(list(producer) + list(consumer))
        if returncode:
            raise error_cls(consumer, returncode)

    @property
    def described(self) -> List[tuple]:
        return [describe(call) for call in self.calls]


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def settings(tmp_path):
    return Settings(log_dir=tmp_path / "logs", ssh_verbose=False)


def make_options(**overrides) -> DeployOptions:
    values = dict(
        drv_path=DRV,
        out_path=OUT,
        target_host=HOST,
        target_port=22,
        build_on_target="false",
        ssh_private_key="-",
        action="switch",
        delete_older_than="30d",
        run_garbage_collection="true",
        extra_build_args=(),
    )
    values.update(overrides)
    return DeployOptions(**values)


@pytest.fixture
def make_command(fake_runner, settings):
    def factory(json_output=False, **overrides) -> DeployCommand:
        return DeployCommand(
            make_options(**overrides),
            json_output=json_output,
            settings=settings,
            runner_factory=lambda logger, **kwargs: fake_runner,
        )

    return factory
