"""Exception types raised by the shell and its helpers."""


class ShellError(Exception):
    """Base class for errors the shell knows how to report."""


class InputError(ShellError):
    """Reading the next line of input failed, or input ended."""


class CommandSyntaxError(ShellError):
    """The assembled command has malformed quoting or escaping."""


class UsageError(ShellError):
    """Unknown verb or wrong arguments for a known verb."""


class CollaboratorError(ShellError):
    """The backend call failed or returned nothing usable."""


class PersistenceError(ShellError):
    """Writing the command history to disk failed."""


class ConfigError(ShellError):
    """Raised for invalid configuration (bad types, missing API token, etc.)."""


def describe(exc: BaseException) -> str:
    """Render an exception together with its chain of causes.

    Each link is separated by ": ", outermost first, so a collaborator
    failure reads e.g. "failed to get response: LLM call failed: timeout".
    """
    parts = []
    seen = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        text = str(exc) or type(exc).__name__
        if not parts or text not in parts[-1]:
            parts.append(text)
        if exc.__cause__ is not None:
            exc = exc.__cause__
        elif exc.__suppress_context__:
            exc = None
        else:
            exc = exc.__context__
    return ": ".join(parts)
