"""
Tests for the AI proxy client and chat message building.
"""

import asyncio
import json
from pathlib import Path

import httpx
import pytest

from nutella_agent.agent.llm import AIClient, build_messages, extract_assistant_text

PROXY_URL = "https://proxy.example.com/openai/chat/completions"


def _client(handler, url: str = PROXY_URL, token: str | None = "local-test") -> AIClient:
    return AIClient(url, token, transport=httpx.MockTransport(handler))


class TestExtractAssistantText:
    """Tests for extract_assistant_text()."""

    def test_message_content(self) -> None:
        assert extract_assistant_text({"choices": [{"message": {"content": "hi"}}]}) == "hi"

    def test_choice_text(self) -> None:
        assert extract_assistant_text({"choices": [{"text": "legacy"}]}) == "legacy"

    def test_top_level_text(self) -> None:
        assert extract_assistant_text({"text": "plain"}) == "plain"

    def test_absent(self) -> None:
        assert extract_assistant_text({"error": "quota"}) is None
        assert extract_assistant_text(["not", "a", "dict"]) is None

    def test_malformed_choices_ignored(self) -> None:
        assert extract_assistant_text({"choices": {"0": {"text": "x"}}, "text": "top"}) == "top"
        assert extract_assistant_text({"choices": "oops"}) is None

    def test_non_string_content_ignored(self) -> None:
        raw = {"choices": [{"message": {"content": ["part"]}, "text": 42}]}
        assert extract_assistant_text(raw) is None


def test_create_chat_completion_posts_body_and_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"choices": [{"message": {"content": "2 users"}}]})

    messages = [{"role": "user", "content": "how many users?"}]
    result = asyncio.run(_client(handler).create_chat_completion(messages, temperature=0.2))

    assert result.assistant == "2 users"
    assert result.raw == {"choices": [{"message": {"content": "2 users"}}]}
    req = seen[0]
    assert req.headers["token"] == "local-test"
    assert req.headers["Content-Type"] == "application/json"
    assert json.loads(req.content) == {
        "messages": messages,
        "n": 1,
        "stream": False,
        "temperature": 0.2,
    }


def test_model_included_when_given() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={})

    asyncio.run(_client(handler).create_chat_completion([], model="gpt-4o-mini"))
    assert bodies[0]["model"] == "gpt-4o-mini"


def test_api_version_appended_once() -> None:
    urls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(str(request.url))
        return httpx.Response(200, json={})

    asyncio.run(_client(handler).create_chat_completion([], api_version="2024-02-15-preview"))
    asyncio.run(
        _client(handler, url=PROXY_URL + "?api-version=old").create_chat_completion(
            [], api_version="2024-02-15-preview"
        )
    )
    assert urls[0] == PROXY_URL + "?api-version=2024-02-15-preview"
    assert urls[1] == PROXY_URL + "?api-version=old"


def test_non_json_body_wrapped_as_text() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad Gateway")

    result = asyncio.run(_client(handler).create_chat_completion([]))
    assert result.raw == {"text": "Bad Gateway"}
    assert result.assistant == "Bad Gateway"


def test_transport_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("ConnectionRefused")

    with pytest.raises(httpx.ConnectError):
        asyncio.run(_client(handler).create_chat_completion([]))


class TestBuildMessages:
    """Tests for build_messages()."""

    def test_prompt_becomes_user_message(self) -> None:
        assert build_messages(prompt="hello") == [{"role": "user", "content": "hello"}]

    def test_no_prompt_no_messages(self) -> None:
        assert build_messages() == []

    def test_explicit_messages_win(self) -> None:
        msgs = [{"role": "system", "content": "s"}, {"role": "user", "content": "u"}]
        assert build_messages(prompt="ignored", messages=msgs) == msgs

    def test_json_content_prepended(self) -> None:
        out = build_messages(prompt="q", json_content='{"a": 1}')
        assert out[0] == {"role": "system", "content": 'Context (JSON):\n{"a": 1}'}
        assert out[1] == {"role": "user", "content": "q"}

    def test_json_file_path(self, tmp_path: Path) -> None:
        f = tmp_path / "ctx.json"
        f.write_text('[1, 2]', encoding="utf-8")
        out = build_messages(prompt="q", json_file_path=f, json_content="ignored")
        assert out[0]["content"] == "Context (JSON):\n[1, 2]"

    def test_unreadable_json_file_path(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Failed to read jsonFilePath"):
            build_messages(prompt="q", json_file_path=tmp_path / "missing.json")
