"""
nixos-deploy UI Components
Standardized headers and UI elements
"""

from typing import Optional

from rich.console import Console

LOGO = "nixos-deploy"

# Color scheme
BRAND_COLOR = "cyan"


def show_header(
    title: str,
    host: Optional[str] = None,
    details: Optional[dict] = None,
    console: Optional[Console] = None,
):
    """
    Display a standardized nixos-deploy header.

    Args:
        title: Main title (e.g., "Deploy System")
        host: Target host (if applicable)
        details: Additional key-value pairs to display
        console: Rich Console instance (creates new if None)
    """
    if console is None:
        console = Console(stderr=True)

    prefix = f" [bold color(214)]{LOGO}[/bold color(214)] [dim]›[/dim]"

    console.print(f"{prefix} [bold white]{title}[/bold white]")

    if host:
        console.print(f"{prefix} Target: [{BRAND_COLOR}]{host}[/{BRAND_COLOR}]")

    if details:
        for key, value in details.items():
            console.print(f"{prefix} {key}: [{BRAND_COLOR}]{value}[/{BRAND_COLOR}]")

    console.print()
