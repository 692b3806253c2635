"""
Response normalization: turn the many shapes of a Nutella users payload into
a flat list of user records.

Responsibility: Detect the wrapper shape, unwrap the list, and map each element
onto canonical keys (id, email, firstName, ...). Unknown keys are preserved.
Never raises; unexpected input degrades to a single record or an empty list.
"""

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ResponseShape(str, Enum):
    """Known wrapper shapes of a users response."""

    EMPTY = "empty"
    PLAIN = "plain"  # [...]
    USERS_WRAPPED = "users_wrapped"  # {"users": [...]}
    DATA_USERS_WRAPPED = "data_users_wrapped"  # {"data": {"users": [...]}}
    DATA_WRAPPED = "data_wrapped"  # {"data": [...]}
    ITEMS_WRAPPED = "items_wrapped"  # {"items": [...]}
    SINGLETON = "singleton"  # {...}


# canonical key -> upstream keys tried in order (first non-empty wins)
USER_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "user_id", "uid", "_id"),
    "email": ("email", "email_address", "emailAddress"),
    "firstName": ("firstName", "first_name", "given_name"),
    "lastName": ("lastName", "last_name", "family_name"),
    "displayName": ("displayName", "display_name", "name", "fullName"),
    "username": ("username", "login"),
    "createdAt": ("createdAt", "created_at", "created"),
    "updatedAt": ("updatedAt", "updated_at", "updated"),
}

CANONICAL_USER_KEYS: frozenset[str] = frozenset(USER_FIELD_ALIASES) | {"name"}


def _is_list(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_empty(raw: Any) -> bool:
    """Falsy scalars (None, "", 0, False) count as empty; containers are handled by shape."""
    if isinstance(raw, (Mapping, list, tuple)):
        return False
    return not raw


def detect_shape(raw: Any) -> ResponseShape:
    """Classify a raw users payload. Checks run in precedence order; first match wins."""
    if _is_empty(raw):
        return ResponseShape.EMPTY
    if _is_list(raw):
        return ResponseShape.PLAIN
    if isinstance(raw, Mapping):
        if _is_list(raw.get("users")):
            return ResponseShape.USERS_WRAPPED
        data = raw.get("data")
        if isinstance(data, Mapping) and _is_list(data.get("users")):
            return ResponseShape.DATA_USERS_WRAPPED
        if _is_list(data):
            return ResponseShape.DATA_WRAPPED
        if _is_list(raw.get("items")):
            return ResponseShape.ITEMS_WRAPPED
    return ResponseShape.SINGLETON


def unwrap_users(raw: Any) -> list[Any]:
    """Return the list of raw user elements contained in a payload."""
    shape = detect_shape(raw)
    if shape is ResponseShape.EMPTY:
        return []
    if shape is ResponseShape.PLAIN:
        return list(raw)
    if shape is ResponseShape.USERS_WRAPPED:
        return list(raw["users"])
    if shape is ResponseShape.DATA_USERS_WRAPPED:
        return list(raw["data"]["users"])
    if shape is ResponseShape.DATA_WRAPPED:
        return list(raw["data"])
    if shape is ResponseShape.ITEMS_WRAPPED:
        return list(raw["items"])
    return [raw]


def _first_present(src: Mapping, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = src.get(key)
        if value is not None and value != "":
            return value
    return None


def _derive_name(record: dict[str, Any], src: Mapping) -> Any:
    """displayName > "firstName lastName" > raw name."""
    if record.get("displayName"):
        return record["displayName"]
    parts = [str(p) for p in (record.get("firstName"), record.get("lastName")) if p]
    if parts:
        return " ".join(parts)
    return src.get("name") or None


def normalize_user(item: Any) -> dict[str, Any]:
    """Map one upstream user object onto canonical keys, keeping every unknown key."""
    src: Mapping = item if isinstance(item, Mapping) else {}
    record: dict[str, Any] = {}
    for field, aliases in USER_FIELD_ALIASES.items():
        value = _first_present(src, aliases)
        if value is not None:
            record[field] = value
    name = _derive_name(record, src)
    if name is not None:
        record["name"] = name
    for key, value in src.items():
        if key not in CANONICAL_USER_KEYS and key not in record:
            record[key] = value
    return record


def normalize_users_response(raw: Any) -> list[dict[str, Any]]:
    """
    Normalize any supported users payload into a list of user records.

    Shapes, in precedence order: empty, plain list, {"users": [...]},
    {"data": {"users": [...]}}, {"data": [...]}, {"items": [...]}, single object.
    """
    shape = detect_shape(raw)
    users = [normalize_user(it) for it in unwrap_users(raw)]
    logger.info("[normalizer] shape=%s users=%d", shape.value, len(users))
    return users
