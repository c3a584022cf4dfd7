"""
Scoped working directory and private key provisioning.

The directory owns the generated key file and the SSH control socket; it is
removed on every exit path.
"""

import os
import shutil
import signal
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from nixos_deploy.constants import SSH_KEY_FILE_NAME, SSH_KEY_PERMISSIONS

TERMINATION_SIGNALS = (signal.SIGTERM, signal.SIGHUP)


@contextmanager
def scoped_workdir(prefix: str = "nixos-deploy.") -> Iterator[Path]:
    """Create a private temp directory and remove it on exit."""
    path = Path(tempfile.mkdtemp(prefix=prefix))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


def provision_key(workdir: Path, key_material: Optional[str]) -> Optional[Path]:
    """
    Write key material to an owner-only file inside workdir.

    Args:
        workdir: Scoped working directory
        key_material: Private key text, or None for ambient credentials

    Returns:
        Path to the key file, or None when no key was supplied
    """
    if key_material is None:
        return None

    key_path = workdir / SSH_KEY_FILE_NAME
    # Permissions are fixed at creation, before any content is written
    fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, SSH_KEY_PERMISSIONS)
    with os.fdopen(fd, "w") as key_file:
        key_file.write(key_material)
        key_file.write("\n")
    # umask may have narrowed the mode further, never widened it
    os.chmod(key_path, SSH_KEY_PERMISSIONS)
    return key_path


def _raise_system_exit(signum, _frame):
    raise SystemExit(128 + signum)


@contextmanager
def exit_on_signals() -> Iterator[None]:
    """
    Turn SIGTERM/SIGHUP into SystemExit so finally blocks still run.

    Previous handlers are restored on exit.
    """
    previous = {}
    for signum in TERMINATION_SIGNALS:
        try:
            previous[signum] = signal.signal(signum, _raise_system_exit)
        except ValueError:
            # Not on the main thread: leave handlers alone
            break
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
