"""Schemas for the query and users search endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class QueryRequest(BaseModel):
    """Request body for POST /query. authToken is sent upstream as a Basic credential."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(..., description="Natural-language question about users or domains.")
    auth_token: str | None = Field(None, alias="authToken", description="Optional Nutella Basic auth token.")


class QueryResponse(BaseModel):
    """Response for POST /query."""

    answer: str = Field(..., description="Answer text (or an error message if the AI service failed).")


class UsersSearchRequest(BaseModel):
    """Request body for POST /users/search."""

    model_config = ConfigDict(populate_by_name=True)

    query: str | None = Field(None, description="Substring to match against each user record; empty returns all.")
    auth_token: str | None = Field(None, alias="authToken")
    cookies: dict[str, str] | None = Field(None, description="Cookies to send to Nutella (name -> value).")
    hs_csrf_token: str | None = Field(None, alias="hsCsrfToken")


class UsersSearchResponse(BaseModel):
    """Response for POST /users/search."""

    results: list[dict] = Field(default_factory=list, description="Normalized user records matching the query.")
