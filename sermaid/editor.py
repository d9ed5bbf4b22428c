"""Interactive input: multi-line command assembly and command history."""

import logging
from collections.abc import Callable, Iterable

from prompt_toolkit.history import FileHistory, History

from .errors import InputError, PersistenceError

logger = logging.getLogger(__name__)

PROMPT = "> "
CONTINUATION = "\\"


class CommandHistory(History):
    """History of assembled commands, optionally backed by a file.

    prompt_toolkit appends every accepted prompt line on its own; those raw
    lines are ignored here so that a command continued over several lines
    is recalled as one entry. Commands enter the history through record().

    The file uses prompt_toolkit's FileHistory format. A file that cannot be
    read is ignored, but a failed write raises PersistenceError.
    """

    def __init__(self, path: str | None = None):
        super().__init__()
        self.path = path
        self._file = FileHistory(path) if path else None

    def load_history_strings(self) -> Iterable[str]:
        if self._file is None:
            return []
        try:
            return list(self._file.load_history_strings())
        except OSError as e:
            logger.debug("ignoring unreadable history file %s: %s", self.path, e)
            return []

    def append_string(self, string: str) -> None:
        pass

    def store_string(self, string: str) -> None:
        if self._file is None:
            return
        try:
            self._file.store_string(string)
        except OSError as e:
            raise PersistenceError(
                f"failed to save history to file {self.path}"
            ) from e

    def record(self, command: str) -> None:
        """Add an assembled command to the history and persist it."""
        if not command:
            return
        if not self._loaded:
            self._loaded_strings = list(self.load_history_strings())
            self._loaded = True
        self._loaded_strings.insert(0, command)
        self.store_string(command)


class LineAssembler:
    """Reads raw lines and joins continued ones into a single command.

    A line ending in a backslash continues on the next line: the backslash
    (and any whitespace before it) is replaced by a newline.
    """

    def __init__(self, read_line: Callable[[str], str], history: CommandHistory):
        self.read_line = read_line
        self.history = history

    def _next_line(self) -> str:
        try:
            return self.read_line(PROMPT)
        except (EOFError, KeyboardInterrupt) as e:
            raise InputError("end of input") from e
        except OSError as e:
            raise InputError("failed to read input line") from e

    def read_command(self) -> str:
        command = ""
        while True:
            line = self._next_line().strip()
            if not line.endswith(CONTINUATION):
                command += line
                break
            command += line[: -len(CONTINUATION)].rstrip() + "\n"

        self.history.record(command)
        return command
