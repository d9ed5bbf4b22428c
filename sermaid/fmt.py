"""ANSI-formatted stderr output using Rich."""

from rich.console import Console
from rich.text import Text

from .spinner import Spinner

_console = Console(stderr=True)


def init(*, color: bool = False, no_color: bool = False) -> None:
    """Reconfigure the module-level console from CLI flags.

    Call once at startup, before any output.
    """
    global _console
    kwargs: dict = {"stderr": True}
    if color:
        kwargs["force_terminal"] = True
        kwargs["no_color"] = False
    if no_color:
        kwargs["no_color"] = True
    _console = Console(**kwargs)


def spinner(label: str = "Waiting for response...") -> Spinner:
    """Return an unstarted Spinner drawing on the stderr console."""
    return Spinner(_console, label)


def banner() -> None:
    _console.print(
        Text("Interactive mode. Type help for commands, exit to quit.", style="dim")
    )


def usage(text: str) -> None:
    _console.print(Text(text, style="dim"))


def warning(msg: str) -> None:
    line = Text()
    line.append("  \u26a0 Warning: ", style="yellow")
    line.append(msg, style="yellow")
    _console.print(line)


def error(msg: str) -> None:
    line = Text()
    line.append("Error: ", style="bold red")
    line.append(msg, style="red")
    _console.print(line)
