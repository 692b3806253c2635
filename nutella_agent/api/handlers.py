"""
API handlers: call the agent pipelines and map their errors to HTTP.

Responsibility: Bridge HTTP types and the agent layer. Exception-to-HTTP mapping
lives here so the graph and services stay free of FastAPI types.
"""

import logging

from fastapi import HTTPException

from nutella_agent.agent.graph import run_pipeline, run_users_workflow
from nutella_agent.core.errors import CacheParseError, NetworkError
from nutella_agent.schemas.query import (
    QueryRequest,
    QueryResponse,
    UsersSearchRequest,
    UsersSearchResponse,
)

logger = logging.getLogger(__name__)


async def handle_query(body: QueryRequest) -> QueryResponse:
    """
    Run the routing pipeline. 400 on a blank query, 502 when Nutella is unreachable
    and nothing is cached, 500 on a corrupt cache file.
    """
    try:
        result = await run_pipeline(body.query, auth_token=body.auth_token)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except NetworkError as e:
        logger.warning("[api:handle_query] upstream failed: %s", e)
        raise HTTPException(status_code=502, detail=f"Nutella API unavailable: {e.message}") from e
    except CacheParseError as e:
        logger.error("[api:handle_query] %s", e)
        raise HTTPException(status_code=500, detail=e.message) from e
    return QueryResponse(answer=result["answer"])


async def handle_users_search(body: UsersSearchRequest) -> UsersSearchResponse:
    """Fetch users and filter by query; same upstream error mapping as handle_query."""
    try:
        result = await run_users_workflow(
            body.query,
            auth_token=body.auth_token,
            cookies=body.cookies,
            hs_csrf_token=body.hs_csrf_token,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except NetworkError as e:
        raise HTTPException(status_code=502, detail=f"Nutella API unavailable: {e.message}") from e
    except CacheParseError as e:
        raise HTTPException(status_code=500, detail=e.message) from e
    return UsersSearchResponse(results=result["results"])
