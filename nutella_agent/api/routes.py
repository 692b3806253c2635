"""
API route aggregator: register endpoints; no logic — only delegate to handlers.
"""

import logging

from fastapi import APIRouter

from nutella_agent.api.handlers import handle_query, handle_users_search
from nutella_agent.schemas.query import (
    QueryRequest,
    QueryResponse,
    UsersSearchRequest,
    UsersSearchResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "Nutella agent running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Query ---

@router.post(
    "/query",
    response_model=QueryResponse,
    tags=["query"],
    summary="Ask a question about users or domains",
    description="Routes the question to users or domains, fetches the data from Nutella, and answers via the AI proxy. 400 on blank query, 502 when Nutella is unreachable and nothing is cached.",
)
async def post_query(body: QueryRequest) -> QueryResponse:
    logger.info("[api:post_query] IN  query=%r auth=%s", body.query, bool(body.auth_token))
    return await handle_query(body)


# --- Users ---

@router.post(
    "/users/search",
    response_model=UsersSearchResponse,
    tags=["users"],
    summary="Fetch users and filter by substring",
    description="Returns normalized user records whose JSON contains the query (case-insensitive). Empty query returns all users.",
)
async def post_users_search(body: UsersSearchRequest) -> UsersSearchResponse:
    logger.info("[api:post_users_search] IN  query=%r", body.query)
    return await handle_users_search(body)
