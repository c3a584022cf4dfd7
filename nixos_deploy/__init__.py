"""nixos-deploy - deploy NixOS system closures to remote hosts over SSH"""

__version__ = "1.0.0"
