"""Shell-style tokenizing and parsing of assembled commands."""

import re
import shlex
from dataclasses import dataclass

from .errors import CommandSyntaxError, UsageError

# Characters split_words() treats specially outside quotes. Newlines are not
# separators: a continued line stays inside the word it falls in.
_WORD_SEPARATORS = " \t\r"
_NEEDS_QUOTING = re.compile(r"[ \t\r'\"\\]")


def split_words(command: str) -> list[str]:
    """Split a command into words using POSIX shell quoting rules.

    Supports single quotes, double quotes and backslash escapes. Raises
    CommandSyntaxError for unterminated quotes or a dangling escape.
    """
    lexer = shlex.shlex(command.strip(), posix=True)
    lexer.whitespace = _WORD_SEPARATORS
    lexer.whitespace_split = True
    lexer.commenters = ""
    try:
        return list(lexer)
    except ValueError as e:
        raise CommandSyntaxError(f"failed to split command {command!r}") from e


def _quote(word: str) -> str:
    if not word or _NEEDS_QUOTING.search(word) or word != word.strip():
        return shlex.quote(word)
    return word


def join_words(words: list[str]) -> str:
    """Inverse of split_words(): split_words(join_words(w)) == w."""
    return " ".join(_quote(w) for w in words)


# -- Command types -----------------------------------------------------------


@dataclass(frozen=True)
class Ask:
    text: str


@dataclass(frozen=True)
class Continue:
    text: str


@dataclass(frozen=True)
class Translate:
    text: str


@dataclass(frozen=True)
class Clear:
    pass


@dataclass(frozen=True)
class Exit:
    pass


@dataclass(frozen=True)
class Help:
    pass


Command = Ask | Continue | Translate | Clear | Exit | Help

# (verb, aliases, command class, description); order is the help order.
VERBS: list[tuple[str, tuple[str, ...], type, str]] = [
    ("ask", ("q",), Ask, "Ask a simple question and get an answer"),
    ("continue", ("c",), Continue, "Ask a follow-up question in the conversation"),
    (
        "translate",
        ("tr",),
        Translate,
        "Translate text to Chinese, or Chinese text to English",
    ),
    ("clear", (), Clear, "Clear the screen"),
    ("exit", (), Exit, "Exit the program"),
    ("help", (), Help, "Show this help message"),
]

_TEXT_COMMANDS = (Ask, Continue, Translate)

_BY_NAME: dict[str, type] = {
    name: cls for verb, aliases, cls, _ in VERBS for name in (verb, *aliases)
}


def usage() -> str:
    """Return the table of verbs, their aliases and what they do."""
    rows = []
    for verb, aliases, cls, description in VERBS:
        names = ", ".join((verb, *aliases))
        if cls in _TEXT_COMMANDS:
            names += " <text>"
        rows.append((names, description))
    width = max(len(names) for names, _ in rows)
    lines = ["Commands:"]
    lines.extend(f"  {names.ljust(width)}  {desc}" for names, desc in rows)
    lines.append("")
    lines.append("<text> is required; a command with no text is rejected.")
    return "\n".join(lines)


def parse_command(tokens: list[str]) -> Command:
    """Map a token list to one Command.

    The first token is the verb (or one of its aliases). Text-taking verbs
    need at least one more token; the rest are rejoined with join_words()
    into the command's text. Raises UsageError otherwise.
    """
    if not tokens:
        raise UsageError(f"missing command\n\n{usage()}")

    verb, *args = tokens
    # A continuation right after the verb leaves "verb\ntext" in one token.
    verb, _, rest = verb.partition("\n")
    rest = rest.lstrip("\n")
    if rest:
        args.insert(0, rest)
    cls = _BY_NAME.get(verb)
    if cls is None:
        raise UsageError(f"unrecognized command {verb!r}\n\n{usage()}")

    if cls in _TEXT_COMMANDS:
        if not args:
            raise UsageError(f"{verb!r} requires some text\n\n{usage()}")
        return cls(join_words(args))

    if args:
        raise UsageError(
            f"{verb!r} takes no arguments, got {join_words(args)!r}\n\n{usage()}"
        )
    return cls()
