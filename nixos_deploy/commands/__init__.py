"""nixos-deploy commands"""
