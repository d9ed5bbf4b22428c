"""Question answering and translation over an OpenAI-compatible API."""

import functools
import logging
from collections.abc import Iterable

import tiktoken

from .errors import CollaboratorError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4-1106-preview"

ANSWER_PROMPT = (
    "Answer the question concisely. Do not repeat yourself, do not give "
    "examples, do not add extra explanation, and never make things up."
)
TRANSLATE_PROMPT = (
    "Translate the user's text into Chinese. If the text is Chinese, "
    "translate it into English."
)


@functools.cache
def _encoder():
    return tiktoken.get_encoding("cl100k_base")


def estimate_tokens(messages: list[dict]) -> int:
    """Count tokens across all messages using tiktoken."""
    total = sum(len(_encoder().encode(m.get("content") or "")) for m in messages)
    # Per-message overhead (role, separators), ~4 tokens each
    return total + 4 * len(messages)


def build_answer_messages(
    question: str, history: Iterable[tuple[str, str]]
) -> list[dict]:
    """System prompt, then each prior pair in order, then the question."""
    messages = [{"role": "system", "content": ANSWER_PROMPT}]
    for prior_question, prior_answer in history:
        messages.append({"role": "user", "content": prior_question})
        messages.append({"role": "assistant", "content": prior_answer})
    messages.append({"role": "user", "content": question})
    return messages


def build_translate_messages(text: str) -> list[dict]:
    return [
        {"role": "system", "content": TRANSLATE_PROMPT},
        {"role": "user", "content": text},
    ]


class OpenAI:
    """Chat completions client.

    Holds only the credentials and endpoint, so one instance can be reused
    for every call.
    """

    def __init__(
        self,
        api_token: str,
        model: str = DEFAULT_MODEL,
        base_url: str | None = None,
    ):
        self.api_token = api_token
        self.model = model
        self.base_url = base_url

    def answer(self, question: str, history: Iterable[tuple[str, str]] = ()) -> str:
        return self.chat_completions(build_answer_messages(question, history))

    def translate(self, text: str) -> str:
        return self.chat_completions(build_translate_messages(text))

    def chat_completions(self, messages: list[dict]) -> str:
        """Send one chat completion request and return the reply text.

        Raises CollaboratorError if the request fails or the response has no
        usable content.
        """
        import litellm

        litellm.suppress_debug_info = True

        kwargs = dict(
            model=f"openai/{self.model}",
            messages=messages,
            temperature=0,
            api_key=self.api_token,
        )
        if self.base_url:
            kwargs["api_base"] = self.base_url

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "chat_completions model=%s messages=%d (~%d tokens)",
                self.model,
                len(messages),
                estimate_tokens(messages),
            )

        try:
            response = litellm.completion(**kwargs)
        except Exception as e:
            raise CollaboratorError(f"failed to request chat completions: {e}") from e

        choices = getattr(response, "choices", None)
        if not choices:
            raise CollaboratorError("failed to request chat completions: empty choices")

        content = choices[-1].message.content
        if not content:
            raise CollaboratorError("failed to request chat completions: empty answer")
        return content
