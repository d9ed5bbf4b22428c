"""Tests for the chat completions client: message shaping and error wrapping."""

from unittest.mock import MagicMock, patch

import pytest

from sermaid.client import (
    ANSWER_PROMPT,
    DEFAULT_MODEL,
    TRANSLATE_PROMPT,
    OpenAI,
    build_answer_messages,
)
from sermaid.errors import CollaboratorError


def _mock_response(content="ok"):
    choice = MagicMock()
    choice.message = MagicMock(content=content)
    resp = MagicMock()
    resp.choices = [choice]
    return resp


class TestMessages:
    def test_answer_without_history(self):
        assert build_answer_messages("why?", []) == [
            {"role": "system", "content": ANSWER_PROMPT},
            {"role": "user", "content": "why?"},
        ]

    def test_answer_replays_history_in_order(self):
        messages = build_answer_messages("Q3", [("Q1", "A1"), ("Q2", "A2")])
        assert [(m["role"], m["content"]) for m in messages[1:]] == [
            ("user", "Q1"),
            ("assistant", "A1"),
            ("user", "Q2"),
            ("assistant", "A2"),
            ("user", "Q3"),
        ]


class TestOpenAI:
    def test_answer_request(self):
        with patch("litellm.completion") as mock_comp:
            mock_comp.return_value = _mock_response("42")
            answer = OpenAI("sk-test").answer("meaning of life")

        assert answer == "42"
        kwargs = mock_comp.call_args[1]
        assert kwargs["model"] == f"openai/{DEFAULT_MODEL}"
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["temperature"] == 0
        assert "api_base" not in kwargs
        assert kwargs["messages"][-1] == {"role": "user", "content": "meaning of life"}

    def test_answer_passes_history(self):
        with patch("litellm.completion") as mock_comp:
            mock_comp.return_value = _mock_response()
            OpenAI("sk-test").answer("again", [("first", "one")])

        messages = mock_comp.call_args[1]["messages"]
        assert messages[1:] == [
            {"role": "user", "content": "first"},
            {"role": "assistant", "content": "one"},
            {"role": "user", "content": "again"},
        ]

    def test_translate_request(self):
        with patch("litellm.completion") as mock_comp:
            mock_comp.return_value = _mock_response("你好")
            assert OpenAI("sk-test").translate("hello") == "你好"

        assert mock_comp.call_args[1]["messages"] == [
            {"role": "system", "content": TRANSLATE_PROMPT},
            {"role": "user", "content": "hello"},
        ]

    def test_model_and_base_url(self):
        with patch("litellm.completion") as mock_comp:
            mock_comp.return_value = _mock_response()
            OpenAI("sk", model="gpt-4o", base_url="http://localhost:8080/v1").answer("x")

        kwargs = mock_comp.call_args[1]
        assert kwargs["model"] == "openai/gpt-4o"
        assert kwargs["api_base"] == "http://localhost:8080/v1"

    def test_uses_last_choice(self):
        first, last = MagicMock(), MagicMock()
        first.message = MagicMock(content="first")
        last.message = MagicMock(content="last")
        resp = MagicMock()
        resp.choices = [first, last]
        with patch("litellm.completion", return_value=resp):
            assert OpenAI("sk").answer("x") == "last"

    def test_request_failure_wrapped(self):
        with patch("litellm.completion", side_effect=RuntimeError("connection refused")):
            with pytest.raises(CollaboratorError) as exc_info:
                OpenAI("sk").answer("x")
        assert "connection refused" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_empty_choices(self):
        resp = MagicMock()
        resp.choices = []
        with patch("litellm.completion", return_value=resp):
            with pytest.raises(CollaboratorError, match="empty choices"):
                OpenAI("sk").translate("x")

    def test_empty_content(self):
        with patch("litellm.completion", return_value=_mock_response(None)):
            with pytest.raises(CollaboratorError, match="empty answer"):
                OpenAI("sk").answer("x")
