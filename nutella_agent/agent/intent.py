"""
Keyword intent classifier: decide whether a query is about users or domains.

Deterministic, no model calls. Matching is case-insensitive substring search,
so "usernames" counts as a user keyword and "setups" as a domain keyword.
"""

import logging
from typing import Literal

logger = logging.getLogger(__name__)

Route = Literal["users", "domains"]
USERS: Route = "users"
DOMAINS: Route = "domains"

DOMAIN_KEYWORDS: tuple[str, ...] = (
    "domain",
    "domains",
    "configuration",
    "config",
    "setting",
    "settings",
    "environment",
    "setup",
)

USER_KEYWORDS: tuple[str, ...] = (
    "user",
    "users",
    "account",
    "accounts",
    "profile",
    "profiles",
    "member",
    "members",
    "people",
    "person",
)


def _mentions_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(k in text for k in keywords)


def resolve_route(mentions_domains: bool, mentions_users: bool) -> Route:
    """
    Tie-break policy. Domains only when the query mentions domain keywords and no
    user keywords; everything else (both, neither, users only) goes to users.
    """
    if mentions_domains and not mentions_users:
        return DOMAINS
    return USERS


def classify_query(query: str) -> Route:
    """Return the route for a free-text query. Never raises."""
    text = (query or "").lower()
    mentions_domains = _mentions_any(text, DOMAIN_KEYWORDS)
    mentions_users = _mentions_any(text, USER_KEYWORDS)
    route = resolve_route(mentions_domains, mentions_users)
    logger.info(
        "[intent] domains=%s users=%s -> %s", mentions_domains, mentions_users, route
    )
    return route
