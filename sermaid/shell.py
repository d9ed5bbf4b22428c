"""Interactive shell: read a command, run it, repeat."""

import argparse
import logging
import sys
from collections.abc import Callable
from importlib import metadata
from typing import assert_never

from . import fmt
from .client import OpenAI
from .commands import (
    Ask,
    Clear,
    Command,
    Continue,
    Exit,
    Help,
    Translate,
    parse_command,
    split_words,
    usage,
)
from .config import (
    API_TOKEN_ENV,
    _UNSET,
    apply_config_to_args,
    generate_config,
    load_config,
)
from .conversation import Conversation
from .editor import CommandHistory, LineAssembler
from .errors import (
    CollaboratorError,
    CommandSyntaxError,
    ConfigError,
    ShellError,
    UsageError,
    describe,
)
from .spinner import Spinner

logger = logging.getLogger(__name__)


class Shell:
    """Owns the line editor, the conversation and the backend client.

    One command runs at a time and at most one backend call is outstanding.
    The conversation only changes after a successful ask/continue.
    """

    def __init__(
        self,
        client: OpenAI,
        assembler: LineAssembler,
        *,
        conversation: Conversation | None = None,
        make_spinner: Callable[[], Spinner] = fmt.spinner,
        clear_screen: Callable[[], None] | None = None,
    ):
        self.client = client
        self.assembler = assembler
        self.conversation = conversation if conversation is not None else Conversation()
        self.make_spinner = make_spinner
        self.clear_screen = clear_screen

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "Shell":
        """Build a shell reading from a prompt_toolkit session."""
        from prompt_toolkit import PromptSession
        from prompt_toolkit.formatted_text import FormattedText
        from prompt_toolkit.shortcuts import clear

        if not args.api_token:
            raise ConfigError(
                "no API token: set api_token in the config file, "
                f"pass --api-token, or export {API_TOKEN_ENV}"
            )

        history = CommandHistory(args.history_file)
        session = PromptSession(history=history)

        def read_line(prompt: str) -> str:
            return session.prompt(FormattedText([("bold fg:ansigreen", prompt)]))

        client = OpenAI(args.api_token, model=args.model, base_url=args.base_url)
        return cls(client, LineAssembler(read_line, history), clear_screen=clear)

    def read(self) -> Command | None:
        """Read and parse the next command.

        Returns None when the input was empty or could not be parsed; the
        problem has already been reported.
        """
        text = self.assembler.read_command()
        try:
            tokens = split_words(text)
            if not tokens:
                return None
            return parse_command(tokens)
        except CommandSyntaxError as e:
            fmt.error(describe(e))
        except UsageError as e:
            fmt.error(str(e))
        return None

    def run(self) -> None:
        """Loop until an exit command.

        InputError and PersistenceError are not handled here and end the loop.
        """
        while True:
            command = self.read()
            if command is None:
                continue
            if not self.dispatch(command):
                return

    def dispatch(self, command: Command) -> bool:
        """Execute one command. Returns False when the shell should exit."""
        match command:
            case Ask(text=text):
                self._converse(text, [])
            case Continue(text=text):
                self._converse(text, self.conversation.pairs())
            case Translate(text=text):
                self._call(self.client.translate, text)
            case Clear():
                if self.clear_screen is not None:
                    self.clear_screen()
            case Help():
                fmt.usage(usage())
            case Exit():
                return False
            case _:
                assert_never(command)
        return True

    def _converse(self, question: str, history: list[tuple[str, str]]) -> None:
        answer = self._call(self.client.answer, question, history)
        if answer is not None:
            self.conversation.record(question, answer)

    def _call(self, request: Callable[..., str], *args) -> str | None:
        """Run one backend request behind the spinner and print the answer.

        Returns None if the request failed or was interrupted.
        """
        try:
            with self.make_spinner():
                answer = request(*args)
        except CollaboratorError as e:
            fmt.error(f"failed to get response from openai: {describe(e)}")
            return None
        except KeyboardInterrupt:
            fmt.warning("interrupted, request aborted.")
            return None

        print(answer)
        return answer


def build_parser():
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="sermaid",
        description="An interactive shell for asking questions and translating text.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print the version and exit.",
    )
    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        default=None,
        help="Configuration file (default: ./config.toml, optional).",
    )
    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Print a template configuration file and exit.",
    )
    parser.add_argument(
        "--api-token",
        type=str,
        default=_UNSET,
        help=f"API token for the backend (overrides config and ${API_TOKEN_ENV}).",
    )
    parser.add_argument(
        "--history-file",
        metavar="FILE",
        default=_UNSET,
        help="Persist command history to FILE.",
    )
    parser.add_argument(
        "--model",
        type=str,
        default=_UNSET,
        help="Model identifier to request.",
    )
    parser.add_argument(
        "--base-url",
        default=_UNSET,
        help="API base URL (default: the OpenAI API).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log debug messages to stderr.",
    )

    color_group = parser.add_mutually_exclusive_group()
    color_group.add_argument(
        "--color",
        action="store_true",
        default=_UNSET,
        help="Force ANSI color even when stderr is not a TTY.",
    )
    color_group.add_argument(
        "--no-color",
        action="store_true",
        default=_UNSET,
        help="Disable ANSI color even when stderr is a TTY.",
    )

    return parser


def main():
    parser = build_parser()
    args = parser.parse_args()

    if args.version:
        try:
            version = metadata.version("sermaid")
        except metadata.PackageNotFoundError:
            version = "unknown"
        print(version)
        sys.exit(0)

    if args.init_config:
        print(generate_config())
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(name)s: %(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = load_config(args.config)
        apply_config_to_args(args, config)
        logger.debug("config loaded: %s", sorted(config))
        fmt.init(color=args.color, no_color=args.no_color)

        shell = Shell.from_args(args)
        fmt.banner()
        shell.run()
    except ShellError as e:
        fmt.error(describe(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
