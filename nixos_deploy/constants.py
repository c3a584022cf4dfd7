"""
nixos-deploy Constants

Centralized constants for magic values, defaults, and configuration.
"""

# Nix Configuration
DEFAULT_SYSTEM_PROFILE = "/nix/var/nix/profiles/system"
DEFAULT_BINARY_CACHE = "https://cache.nixos.org/"
SWITCH_TO_CONFIGURATION = "bin/switch-to-configuration"

# Remote privilege escalation (assumes passwordless sudo on the target)
DEFAULT_REMOTE_HELPER = "./maybe-sudo.sh"

# SSH Configuration
SSH_CONTROL_PERSIST = 60
SSH_CONTROL_SOCKET_NAME = "ssh_control"
SSH_KEY_FILE_NAME = "ssh_key"
SSH_KEY_PERMISSIONS = 0o600

# Avoid issues with IP re-use. This disables TOFU security.
SSH_BASE_OPTIONS = [
    "ControlMaster=auto",
    f"ControlPersist={SSH_CONTROL_PERSIST}",
    "StrictHostKeyChecking=no",
    "UserKnownHostsFile=/dev/null",
    "GlobalKnownHostsFile=/dev/null",
    # interactive authentication is not possible
    "BatchMode=yes",
]

# Key values meaning "use ambient credentials"
NO_KEY_VALUES = ("", "-")

# Flag parsing
TRUE_VALUE = "true"

# Environment / settings
ENV_PREFIX = "NIXOS_DEPLOY_"
SETTINGS_DIR_NAME = ".nixos-deploy"
DEFAULT_LOG_DIR = "~/.nixos-deploy/logs"

# Log Configuration
LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_TIME_FORMAT = "%H-%M-%S"

# Exit codes
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130
