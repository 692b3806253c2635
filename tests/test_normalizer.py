"""
Unit tests for users response normalization: shape detection and field mapping.
"""

import pytest

from nutella_agent.services.normalizer import (
    ResponseShape,
    detect_shape,
    normalize_user,
    normalize_users_response,
)


class TestDetectShape:
    """Tests for detect_shape()."""

    @pytest.mark.parametrize(
        "raw, shape",
        [
            (None, ResponseShape.EMPTY),
            ("", ResponseShape.EMPTY),
            ([], ResponseShape.PLAIN),
            ([{"id": "1"}], ResponseShape.PLAIN),
            ({"users": []}, ResponseShape.USERS_WRAPPED),
            ({"data": {"users": [{}]}}, ResponseShape.DATA_USERS_WRAPPED),
            ({"data": [{}]}, ResponseShape.DATA_WRAPPED),
            ({"items": [{}]}, ResponseShape.ITEMS_WRAPPED),
            ({"id": "1"}, ResponseShape.SINGLETON),
        ],
    )
    def test_shapes(self, raw, shape: ResponseShape) -> None:
        assert detect_shape(raw) is shape

    def test_users_wins_over_data(self) -> None:
        assert detect_shape({"users": [{}], "data": [{}]}) is ResponseShape.USERS_WRAPPED

    def test_non_list_wrapper_values_fall_through(self) -> None:
        assert detect_shape({"users": "nope", "data": {"users": None}}) is ResponseShape.SINGLETON


class TestNormalizeUsersResponse:
    """Tests for normalize_users_response()."""

    def test_empty_inputs(self) -> None:
        assert normalize_users_response(None) == []
        assert normalize_users_response([]) == []
        assert normalize_users_response({"users": []}) == []

    def test_aliases_and_passthrough(self) -> None:
        out = normalize_users_response({"users": [{"user_id": "1", "email_address": "a@b.com"}]})
        assert out == [
            {"id": "1", "email": "a@b.com", "user_id": "1", "email_address": "a@b.com"}
        ]
        assert "name" not in out[0]

    def test_bare_object_becomes_single_record(self) -> None:
        out = normalize_users_response({"uid": "u-9", "login": "ada", "team": "core"})
        assert out == [{"id": "u-9", "username": "ada", "uid": "u-9", "login": "ada", "team": "core"}]

    def test_nested_data_users(self) -> None:
        out = normalize_users_response({"data": {"users": [{"_id": "x"}, {"_id": "y"}]}})
        assert [u["id"] for u in out] == ["x", "y"]

    def test_items_wrapper_keeps_order(self) -> None:
        out = normalize_users_response({"items": [{"id": "3"}, {"id": "1"}, {"id": "2"}]})
        assert [u["id"] for u in out] == ["3", "1", "2"]


class TestNormalizeUser:
    """Tests for normalize_user() field mapping and name derivation."""

    def test_display_name_wins(self) -> None:
        u = normalize_user({"displayName": "Ada L.", "firstName": "Ada", "lastName": "Lovelace"})
        assert u["name"] == "Ada L."

    def test_first_last_joined(self) -> None:
        u = normalize_user({"first_name": "Ada", "family_name": "Lovelace"})
        assert u["firstName"] == "Ada"
        assert u["lastName"] == "Lovelace"
        assert u["name"] == "Ada Lovelace"

    def test_only_last_name(self) -> None:
        assert normalize_user({"lastName": "Lovelace"})["name"] == "Lovelace"

    def test_raw_name_feeds_display_name(self) -> None:
        u = normalize_user({"name": "Grace Hopper"})
        assert u["displayName"] == "Grace Hopper"
        assert u["name"] == "Grace Hopper"

    def test_canonical_key_wins_over_alias(self) -> None:
        u = normalize_user({"id": "a", "user_id": "b", "createdAt": "t1", "created_at": "t2"})
        assert u["id"] == "a"
        assert u["createdAt"] == "t1"
        assert u["user_id"] == "b"
        assert u["created_at"] == "t2"

    def test_empty_values_skipped(self) -> None:
        u = normalize_user({"email": "", "emailAddress": "x@y.z"})
        assert u["email"] == "x@y.z"

    def test_timestamps(self) -> None:
        u = normalize_user({"created": "2024-01-01", "updated_at": "2024-02-01"})
        assert u["createdAt"] == "2024-01-01"
        assert u["updatedAt"] == "2024-02-01"

    def test_non_mapping_element(self) -> None:
        assert normalize_user("not-a-user") == {}
        assert normalize_user(None) == {}
