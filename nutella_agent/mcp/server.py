"""
Minimal MCP-style tool server: exposes the Nutella fetch tools and the AI proxy
tool through a standardized tool interface, so external agents can call them
without going through the routing pipeline.
"""

import logging
from typing import Any, Literal

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from nutella_agent.agent.graph import default_client_factory
from nutella_agent.agent.llm import AIClient, build_messages
from nutella_agent.core.config import (
    AI_COMPLETIONS,
    AI_HTTP_TIMEOUT,
    AI_PROXY_TOKEN,
    AI_PROXY_URL,
    AI_TEMPERATURE,
    OPENAI_MODEL,
)
from nutella_agent.core.errors import CacheParseError, NetworkError

logger = logging.getLogger(__name__)

# MCP tool schema for discovery / documentation
tools = [
    {
        "name": "get_users",
        "description": "Fetch users from the Nutella API (cached hourly)",
        "input_schema": {"authToken": "string (optional)", "cookies": "object (optional)"},
    },
    {
        "name": "get_domains",
        "description": "Fetch domain configuration from the Nutella API (cached hourly)",
        "input_schema": {"authToken": "string (optional)", "cookies": "object (optional)"},
    },
    {
        "name": "ai",
        "description": "Call the AI proxy with a prompt or messages and optional JSON context",
        "input_schema": {
            "prompt": "string",
            "messages": "array of {role, content}",
            "jsonContent": "string",
            "jsonFilePath": "string",
            "model": "string",
            "temperature": "number",
            "n": "integer",
        },
    },
]

mcp_router = APIRouter(tags=["mcp"])


class FetchToolRequest(BaseModel):
    """Request body for get_users / get_domains."""

    model_config = ConfigDict(populate_by_name=True)

    auth_token: str | None = Field(None, alias="authToken")
    cookies: dict[str, str] | None = None
    hs_csrf_token: str | None = Field(None, alias="hsCsrfToken")


class ChatMessageIn(BaseModel):
    role: str
    content: str


class AIToolRequest(BaseModel):
    """Request body for the ai tool. Falls back to AI_PROXY_URL / AI_PROXY_TOKEN / OPENAI_MODEL."""

    model_config = ConfigDict(populate_by_name=True)

    api_url: str | None = Field(None, alias="apiUrl")
    token: str | None = None
    prompt: str | None = None
    messages: list[ChatMessageIn] | None = None
    json_file_path: str | None = Field(None, alias="jsonFilePath")
    json_content: str | None = Field(None, alias="jsonContent")
    model: str | None = None
    temperature: float | None = None
    n: int | None = None
    entity_type: Literal["users", "domains"] | None = Field(None, alias="entityType")
    entity_data: Any = Field(None, alias="entityData")
    original_query: str | None = Field(None, alias="originalQuery")


@mcp_router.get("/tools", summary="MCP tool listing")
def mcp_list_tools() -> dict[str, list[dict[str, Any]]]:
    return {"tools": tools}


async def _fetch(kind: str, body: FetchToolRequest) -> Any:
    client = default_client_factory(body.auth_token, body.cookies, body.hs_csrf_token)
    try:
        return await client.fetch(kind)
    except NetworkError as e:
        raise HTTPException(status_code=502, detail=e.message) from e
    except CacheParseError as e:
        raise HTTPException(status_code=500, detail=e.message) from e


@mcp_router.post(
    "/tools/get_users",
    summary="MCP tool: get_users",
    description="Raw users payload from the Nutella API, as returned upstream.",
)
async def mcp_get_users(body: FetchToolRequest) -> dict[str, Any]:
    logger.info("MCP tool called: get_users")
    return {"users": await _fetch("users", body)}


@mcp_router.post(
    "/tools/get_domains",
    summary="MCP tool: get_domains",
    description="Raw domains payload from the Nutella API, as returned upstream.",
)
async def mcp_get_domains(body: FetchToolRequest) -> dict[str, Any]:
    logger.info("MCP tool called: get_domains")
    return {"domains": await _fetch("domains", body)}


@mcp_router.post(
    "/tools/ai",
    summary="MCP tool: ai",
    description="Send a prompt (or messages) with optional JSON context to the AI proxy. Returns {assistant, raw}.",
)
async def mcp_ai(body: AIToolRequest) -> dict[str, Any]:
    logger.info("MCP tool called: ai")
    try:
        messages = build_messages(
            prompt=body.prompt,
            messages=[m.model_dump() for m in body.messages] if body.messages is not None else None,
            json_content=body.json_content,
            json_file_path=body.json_file_path,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    if body.entity_type and body.entity_data is not None and body.original_query:
        logger.info("AI tool called with entity type: %s, query: %r", body.entity_type, body.original_query)

    client = AIClient(body.api_url or AI_PROXY_URL, body.token or AI_PROXY_TOKEN, timeout=AI_HTTP_TIMEOUT)
    result = await client.create_chat_completion(
        messages,
        temperature=AI_TEMPERATURE if body.temperature is None else body.temperature,
        n=AI_COMPLETIONS if body.n is None else body.n,
        model=body.model or OPENAI_MODEL,
    )
    return {"assistant": result.assistant, "raw": result.raw}
