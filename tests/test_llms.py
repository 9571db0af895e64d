"""Tests for problem_tracker.core.llms."""

from unittest.mock import MagicMock, patch

import pytest

from problem_tracker.core.llms import call_llm, strip_markdown_json, try_json_parsing


def _make_completion_response(content: str | None = "Hello") -> MagicMock:
    """Build a minimal litellm-style response mock."""
    message = MagicMock()
    message.content = content

    choice = MagicMock()
    choice.message = message

    response = MagicMock()
    response.choices = [choice]
    return response


@pytest.fixture()
def mock_completion():
    with patch("problem_tracker.core.llms.completion") as m:
        m.return_value = _make_completion_response("  Hello  ")
        yield m


def test_returns_stripped_content(mock_completion):
    assert call_llm("hi") == "Hello"


def test_builds_messages_with_system_prompt(mock_completion):
    call_llm("hi", system_prompt="be brief")

    messages = mock_completion.call_args.kwargs["messages"]
    assert messages == [
        {"role": "system", "content": "be brief"},
        {"role": "user", "content": "hi"},
    ]


def test_bedrock_model_gets_region(mock_completion):
    call_llm("hi", model="bedrock/amazon.nova-micro-v1:0")

    kwargs = mock_completion.call_args.kwargs
    assert kwargs["model"] == "bedrock/amazon.nova-micro-v1:0"
    assert "aws_region_name" in kwargs


def test_non_bedrock_model_has_no_region(mock_completion):
    call_llm("hi", model="openai/gpt-4.1")

    assert "aws_region_name" not in mock_completion.call_args.kwargs


def test_empty_content_raises(mock_completion):
    mock_completion.return_value = _make_completion_response(None)

    with pytest.raises(Exception, match="No content received"):
        call_llm("hi")


def test_provider_error_is_wrapped(mock_completion):
    mock_completion.side_effect = RuntimeError("rate limited")

    with pytest.raises(Exception, match="Error calling LLM: rate limited"):
        call_llm("hi")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('{"a": 1}', '{"a": 1}'),
        ('```json\n{"a": 1}\n```', '{"a": 1}'),
        ('```\n{"a": {"b": 2}}\n```', '{"a": {"b": 2}}'),
    ],
    ids=["plain", "json-fence", "nested-bare-fence"],
)
def test_strip_markdown_json(raw, expected):
    assert strip_markdown_json(raw) == expected


def test_try_json_parsing_repairs_trailing_comma():
    assert try_json_parsing('{"hints": ["a", "b",]}') == {"hints": ["a", "b"]}


def test_try_json_parsing_rejects_empty():
    with pytest.raises(ValueError):
        try_json_parsing("")
