import json
import os
import shutil
import subprocess
import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

from nixos_deploy.commands.deploy import deploy
from tests.conftest import DRV, OUT

ROOT = Path(__file__).resolve().parent.parent

pytestmark = pytest.mark.skipif(shutil.which("sh") is None, reason="needs a POSIX shell")

FAKE_SSH = """#!/bin/sh
echo "ssh $*" >> "$FAKE_LOG"
for last; do :; done
case "$last" in
  *"nix-store --import"*) cat > /dev/null ;;
  *"nix-store --realize"*) echo /nix/store/bbbb-nixos-system ;;
esac
exit 0
"""

FAKE_NIX_STORE = """#!/bin/sh
echo "nix-store $*" >> "$FAKE_LOG"
case "$1" in
  --query) echo /nix/store/cccc-dep.drv; echo "$3" ;;
  --realize) echo /nix/store/bbbb-nixos-system ;;
  --export) echo exported-closure ;;
esac
exit 0
"""

FAKE_NIX_COPY_CLOSURE = """#!/bin/sh
echo "nix-copy-closure $*" >> "$FAKE_LOG"
echo "copying 1 paths..."
exit 0
"""


@pytest.fixture
def fake_tools(tmp_path):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    for name, script in [
        ("ssh", FAKE_SSH),
        ("nix-store", FAKE_NIX_STORE),
        ("nix-copy-closure", FAKE_NIX_COPY_CLOSURE),
    ]:
        path = bin_dir / name
        path.write_text(script)
        path.chmod(0o755)

    tmp_dir = tmp_path / "tmp"
    tmp_dir.mkdir()

    env = {
        k: v for k, v in os.environ.items() if k not in ("NIXOS_DEPLOY_VERBOSE", "NIXOS_DEPLOY_JSON")
    }
    env.update(
        {
            "PATH": f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}",
            "HOME": str(tmp_path),
            "TMPDIR": str(tmp_dir),
            "FAKE_LOG": str(tmp_path / "calls.log"),
            "NIXOS_DEPLOY_LOG_DIR": str(tmp_path / "logs"),
            "PYTHONPATH": str(ROOT),
        }
    )
    return env


def calls(env) -> list[str]:
    return Path(env["FAKE_LOG"]).read_text().splitlines()


@pytest.mark.parametrize("build_on_target", ["true", "false"])
def test_json_stdout_is_only_the_summary(fake_tools, tmp_path, build_on_target):
    result = subprocess.run(
        [
            sys.executable, "-m", "nixos_deploy", "--json",
            DRV, OUT, "h", "22", build_on_target, "-", "switch", "30d", "false", "ignoreme",
        ],
        capture_output=True,
        text=True,
        env=fake_tools,
        cwd=tmp_path,
        timeout=60,
    )

    assert result.returncode == 0, result.stderr
    data = json.loads(result.stdout)
    assert data["status"] == "success"
    assert data["out_path"] == OUT
    # Tool output is still visible, just not on stdout
    assert OUT in result.stderr or "copying" in result.stderr
    assert os.listdir(fake_tools["TMPDIR"]) == []


def test_remote_build_through_real_processes(fake_tools, tmp_path):
    result = subprocess.run(
        [
            sys.executable, "-m", "nixos_deploy",
            DRV, OUT, "h", "2222", "true", "KEY", "boot", "1 2", "true", "--option", "cores", "2", "ignoreme",
        ],
        capture_output=True,
        text=True,
        env=fake_tools,
        cwd=tmp_path,
        timeout=60,
    )

    assert result.returncode == 0, result.stderr
    lines = calls(fake_tools)
    assert lines[0] == f"nix-store --query --requisites {DRV}"
    # Both ends of the export pipe run concurrently
    exporter, importer = sorted(lines[1:3])
    assert exporter.startswith("nix-store --export /nix/store/cccc-dep.drv")
    assert "Compression=yes" in importer and importer.endswith("h nix-store --import")
    assert "nix-store --realize" in lines[3] and "--option cores 2" in lines[3]
    assert lines[4].endswith(f"--set {OUT}")
    assert lines[5].endswith(f"{OUT}/bin/switch-to-configuration boot")
    assert lines[6].endswith("--delete-generations 1 2")
    assert lines[7].endswith("nix-store --gc")
    assert lines[8].endswith("-O stop h")
    assert all("IdentityFile=" in line and "-p 2222" in line for line in lines if line.startswith("ssh "))
    assert os.listdir(fake_tools["TMPDIR"]) == []


def test_failing_tool_exit_status_through_real_processes(fake_tools, tmp_path):
    failing = Path(fake_tools["PATH"].split(os.pathsep)[0]) / "nix-copy-closure"
    failing.write_text('#!/bin/sh\necho "nix-copy-closure $*" >> "$FAKE_LOG"\nexit 3\n')

    result = subprocess.run(
        [sys.executable, "-m", "nixos_deploy", DRV, OUT, "h", "22", "false", "-", "switch", "30d", "true", "x"],
        capture_output=True,
        text=True,
        env=fake_tools,
        cwd=tmp_path,
        timeout=60,
    )

    assert result.returncode == 3
    lines = calls(fake_tools)
    assert lines[-2].startswith("nix-copy-closure --to h")
    assert lines[-1].endswith("-O stop h")
    assert os.listdir(fake_tools["TMPDIR"]) == []


def test_verbose_echoes_commands(fake_tools, tmp_path, monkeypatch):
    for key in ("NIXOS_DEPLOY_VERBOSE", "NIXOS_DEPLOY_JSON"):
        monkeypatch.delenv(key, raising=False)
    for key in ("PATH", "HOME", "TMPDIR", "FAKE_LOG", "NIXOS_DEPLOY_LOG_DIR"):
        monkeypatch.setenv(key, fake_tools[key])
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(
        deploy, ["-v", DRV, OUT, "h", "22", "false", "-", "switch", "30d", "false", "ignoreme"]
    )

    assert result.exit_code == 0, result.output
    assert "Executing: nix-store --realize" in result.output
    assert "NIX_SSHOPTS=" in result.output
    assert calls(fake_tools)[0].startswith(f"nix-store --realize {DRV}")
