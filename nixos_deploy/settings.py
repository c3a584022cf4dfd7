"""nixos-deploy settings loaded from the environment and an optional .env file"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import dotenv_values

from nixos_deploy.constants import (
    DEFAULT_BINARY_CACHE,
    DEFAULT_LOG_DIR,
    DEFAULT_REMOTE_HELPER,
    DEFAULT_SYSTEM_PROFILE,
    ENV_PREFIX,
    SETTINGS_DIR_NAME,
)
from nixos_deploy.exceptions import ConfigurationError


def find_env_file() -> Optional[Path]:
    """Smart .env file detection"""
    search_paths = [
        Path.cwd() / ".env",
        Path.home() / SETTINGS_DIR_NAME / ".env",
    ]

    for path in search_paths:
        if path.exists():
            return path

    return None


def _bool_setting(values: Mapping[str, str], key: str, default: bool) -> bool:
    raw = values.get(key)
    if raw is None or raw == "":
        return default

    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False

    raise ConfigurationError(
        f"Invalid boolean for {key}: '{raw}'",
        context="Use one of: true, false, 1, 0, yes, no",
    )


@dataclass(frozen=True)
class Settings:
    """Tool-wide settings (not per-deployment arguments)."""

    log_dir: Path
    profile: str = DEFAULT_SYSTEM_PROFILE
    remote_helper: str = DEFAULT_REMOTE_HELPER
    ssh_verbose: bool = True
    binary_cache: str = DEFAULT_BINARY_CACHE
    env_file: Optional[Path] = None

    @classmethod
    def from_mapping(
        cls, values: Mapping[str, str], env_file: Optional[Path] = None
    ) -> "Settings":
        """Build settings from NIXOS_DEPLOY_* keys."""
        return cls(
            log_dir=Path(values.get(f"{ENV_PREFIX}LOG_DIR") or DEFAULT_LOG_DIR).expanduser(),
            profile=values.get(f"{ENV_PREFIX}PROFILE") or DEFAULT_SYSTEM_PROFILE,
            remote_helper=values.get(f"{ENV_PREFIX}REMOTE_HELPER") or DEFAULT_REMOTE_HELPER,
            ssh_verbose=_bool_setting(values, f"{ENV_PREFIX}SSH_VERBOSE", True),
            binary_cache=values.get(f"{ENV_PREFIX}BINARY_CACHE") or DEFAULT_BINARY_CACHE,
            env_file=env_file,
        )


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Load settings, process environment taking precedence over .env.

    Args:
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Settings instance
    """
    if environ is None:
        environ = os.environ

    values: Dict[str, str] = {}
    env_file = find_env_file()
    if env_file:
        values.update(
            {k: v for k, v in dotenv_values(env_file).items() if k.startswith(ENV_PREFIX) and v is not None}
        )

    values.update({k: v for k, v in environ.items() if k.startswith(ENV_PREFIX)})
    return Settings.from_mapping(values, env_file=env_file)
