"""
Agent LLM: chat completions through the AI proxy.

The proxy speaks the OpenAI chat/completions wire format and authenticates with a
`token` header. Returns both the parsed assistant text (when present) and the raw
payload so callers can fall back to the raw response.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)
API_TIMEOUT = 60.0


@dataclass
class ChatCompletionResult:
    """Raw proxy payload plus the assistant text extracted from it (None when absent)."""

    raw: Any
    assistant: str | None = None


def extract_assistant_text(raw: Any) -> str | None:
    """choices[0].message.content, else choices[0].text, else text."""
    if not isinstance(raw, dict):
        return None
    choices = raw.get("choices")
    if not isinstance(choices, list):
        choices = []
    first = choices[0] if choices and isinstance(choices[0], dict) else {}
    message = first.get("message") if isinstance(first.get("message"), dict) else {}
    for value in (message.get("content"), first.get("text"), raw.get("text")):
        if isinstance(value, str):
            return value
    return None


def build_messages(
    prompt: str | None = None,
    messages: list[dict[str, str]] | None = None,
    json_content: str | None = None,
    json_file_path: str | Path | None = None,
) -> list[dict[str, str]]:
    """
    Build a chat message list. Explicit messages win over prompt; JSON context (file
    or inline string) is prepended as a system message.

    Raises:
        ValueError: If json_file_path is given but cannot be read.
    """
    if messages is not None:
        out = [{"role": m["role"], "content": m["content"]} for m in messages]
    else:
        text = str(prompt or "")
        out = [{"role": "user", "content": text}] if text else []

    context: str | None = None
    if json_file_path:
        try:
            context = Path(json_file_path).read_text(encoding="utf-8")
        except OSError as e:
            raise ValueError(f"Failed to read jsonFilePath {json_file_path}: {e}") from e
    elif json_content:
        context = str(json_content)

    if context is not None:
        out.insert(0, {"role": "system", "content": f"Context (JSON):\n{context}"})
    return out


class AIClient:
    """Client for the AI proxy chat/completions endpoint."""

    def __init__(
        self,
        api_url: str,
        token: str | None = None,
        timeout: float = API_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = api_url
        self.token = token
        self.timeout = timeout
        self._transport = transport

    def _url(self, api_version: str | None) -> str:
        url = self.api_url
        if api_version and "api-version=" not in url:
            url += ("&" if "?" in url else "?") + f"api-version={quote(api_version, safe='')}"
        return url

    async def create_chat_completion(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.1,
        n: int = 1,
        stream: bool = False,
        model: str | None = None,
        api_version: str | None = None,
    ) -> ChatCompletionResult:
        """
        POST messages to the proxy. Non-2xx responses are returned as raw payloads;
        transport failures (connection refused, timeouts) raise httpx errors.
        """
        body: dict[str, Any] = {
            "messages": [{"role": m["role"], "content": m["content"]} for m in messages],
            "n": n,
            "stream": stream,
            "temperature": temperature,
        }
        if model:
            body["model"] = model
        headers = {"Content-Type": "application/json", "token": str(self.token or "")}
        url = self._url(api_version)

        logger.info("[llm] IN  messages=%d model=%s", len(messages), model)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(url, content=json.dumps(body), headers=headers)

        if response.status_code >= 400:
            logger.warning("[llm] proxy error %s: %s", response.status_code, response.text[:200])
        try:
            raw = response.json()
        except ValueError:
            raw = {"text": response.text}
        assistant = extract_assistant_text(raw)
        logger.info("[llm] OUT response_len=%d", len(assistant or ""))
        return ChatCompletionResult(raw=raw, assistant=assistant)
