"""Shared Rich console for the CLI."""

from rich.console import Console

console = Console()


def report_step(message: str) -> None:
    """Report progress to the user.

    Args:
        message: Progress message to display.
    """
    console.print(f"[bold cyan]•[/bold cyan] {message}")


def style_status(status: str) -> str:
    """Colour a status value for table output.

    Args:
        status: Resource status string.

    Returns:
        The status wrapped in Rich markup.
    """
    if status.startswith("present"):
        return f"[green]{status}[/green]"
    if status.startswith("missing"):
        return f"[yellow]{status}[/yellow]"
    return f"[red]{status}[/red]"
