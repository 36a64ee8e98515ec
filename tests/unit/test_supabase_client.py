"""Tests for the Supabase HTTP client, identity service and table service."""
import time
from unittest.mock import MagicMock

import jwt
import pytest

from storeadmin.core.supabase import (
    REQUEST_TIMEOUT,
    IdentityAlreadyExistsError,
    IdentityService,
    InvalidSessionError,
    SupabaseAPIError,
    SupabaseClient,
    TableService,
    build_filters,
)

BASE_URL = "http://supabase.test"
JWT_SECRET = "super-secret-jwt-token-with-at-least-32-characters"


def _response(payload=None, status_code=200, url=BASE_URL):
    resp = MagicMock()
    resp.status_code = status_code
    resp.url = url
    resp.text = "" if payload is None else str(payload)
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    return resp


@pytest.fixture()
def client():
    return SupabaseClient(BASE_URL + "/", "service-key")


def _token(sub="user-1", aud="authenticated", exp_offset=3600, secret=JWT_SECRET):
    now = int(time.time())
    claims = {"sub": sub, "aud": aud, "exp": now + exp_offset, "iat": now, "email": "s@example.com"}
    return jwt.encode(claims, secret, algorithm="HS256")


# ─────────────────────────────────────────────────────────────────────────────
# SupabaseClient
# ─────────────────────────────────────────────────────────────────────────────

def test_client_sends_api_key_headers(client, mocker):
    get = mocker.patch("requests.get", return_value=_response([]))

    client.get("/rest/v1/Profiles", params={"select": "*"})

    args, kwargs = get.call_args
    assert args[0] == "http://supabase.test/rest/v1/Profiles"
    assert kwargs["headers"]["apikey"] == "service-key"
    assert kwargs["headers"]["Authorization"] == "Bearer service-key"
    assert kwargs["timeout"] == REQUEST_TIMEOUT


def test_client_bearer_override(client, mocker):
    get = mocker.patch("requests.get", return_value=_response({}))
    client.get("/auth/v1/user", bearer="user-token")
    assert get.call_args.kwargs["headers"]["Authorization"] == "Bearer user-token"


@pytest.mark.parametrize(
    "body,expected",
    [
        ({"msg": "User not allowed"}, "User not allowed"),
        ({"error": "invalid_grant", "error_description": "Invalid login credentials"}, "Invalid login credentials"),
        ({"code": "23505", "message": "duplicate key value"}, "duplicate key value"),
    ],
)
def test_client_error_message_extraction(client, mocker, body, expected):
    mocker.patch("requests.post", return_value=_response(body, status_code=400))

    with pytest.raises(SupabaseAPIError) as exc:
        client.post("/auth/v1/token", json={})

    assert exc.value.status_code == 400
    assert exc.value.message == expected


def test_client_error_with_non_json_body(client, mocker):
    resp = _response(ValueError("no json"), status_code=502)
    resp.text = "Bad Gateway"
    mocker.patch("requests.delete", return_value=resp)

    with pytest.raises(SupabaseAPIError) as exc:
        client.delete("/rest/v1/Profiles")
    assert exc.value.message == "Bad Gateway"


# ─────────────────────────────────────────────────────────────────────────────
# IdentityService
# ─────────────────────────────────────────────────────────────────────────────

def test_authenticate_uses_password_grant(client, mocker):
    post = mocker.patch("requests.post", return_value=_response({"access_token": "t", "user": {"id": "u"}}))
    public = SupabaseClient(BASE_URL, "anon-key")

    session = IdentityService(client, public).authenticate("a@example.com", "pw")

    assert session["access_token"] == "t"
    args, kwargs = post.call_args
    assert args[0] == "http://supabase.test/auth/v1/token"
    assert kwargs["params"] == {"grant_type": "password"}
    assert kwargs["headers"]["apikey"] == "anon-key"


def test_resolve_session_remote(client, mocker):
    mocker.patch("requests.get", return_value=_response({"id": "u1", "email": "a@example.com"}))
    user = IdentityService(client).resolve_session("opaque")
    assert user == {"id": "u1", "email": "a@example.com", "user_metadata": {}}


def test_resolve_session_remote_rejection(client, mocker):
    mocker.patch("requests.get", return_value=_response({"msg": "invalid JWT"}, status_code=401))
    with pytest.raises(InvalidSessionError):
        IdentityService(client).resolve_session("opaque")


def test_resolve_session_empty_token(client):
    with pytest.raises(InvalidSessionError):
        IdentityService(client).resolve_session("")


def test_resolve_session_local_jwt(client, mocker):
    get = mocker.patch("requests.get")
    user = IdentityService(client, jwt_secret=JWT_SECRET).resolve_session(_token())

    assert user["id"] == "user-1"
    assert user["email"] == "s@example.com"
    get.assert_not_called()


@pytest.mark.parametrize(
    "token_kwargs",
    [
        {"exp_offset": -3600},
        {"aud": "anon"},
        {"secret": "another-secret-that-is-also-32-chars-long!!"},
    ],
)
def test_resolve_session_local_jwt_rejections(client, token_kwargs):
    with pytest.raises(InvalidSessionError):
        IdentityService(client, jwt_secret=JWT_SECRET).resolve_session(_token(**token_kwargs))


def test_create_identity_confirms_email(client, mocker):
    post = mocker.patch("requests.post", return_value=_response({"id": "new-id"}))

    user = IdentityService(client).create_identity("S1@example.com", "pw", {"role": "store"})

    assert user["id"] == "new-id"
    payload = post.call_args.kwargs["json"]
    assert payload["email_confirm"] is True
    assert payload["user_metadata"] == {"role": "store"}


def test_create_identity_duplicate(client, mocker):
    mocker.patch(
        "requests.post",
        return_value=_response({"msg": "A user with this email address has already been registered"}, status_code=422),
    )
    with pytest.raises(IdentityAlreadyExistsError):
        IdentityService(client).create_identity("S1@example.com", "pw")


def test_update_and_delete_identity_paths(client, mocker):
    put = mocker.patch("requests.put", return_value=_response({"id": "u1"}))
    delete = mocker.patch("requests.delete", return_value=_response({}))
    service = IdentityService(client)

    service.update_identity("u1", {"password": "new"})
    service.delete_identity("u1")

    assert put.call_args.args[0] == "http://supabase.test/auth/v1/admin/users/u1"
    assert put.call_args.kwargs["json"] == {"password": "new"}
    assert delete.call_args.args[0] == "http://supabase.test/auth/v1/admin/users/u1"


# ─────────────────────────────────────────────────────────────────────────────
# TableService
# ─────────────────────────────────────────────────────────────────────────────

def test_build_filters():
    params = build_filters(
        eq={"store_id": "STORE1", "status": True, "deleted_at": None},
        in_={"date": ["2024-05-06", 'a"b']},
    )
    assert params == {
        "store_id": "eq.STORE1",
        "status": "eq.true",
        "deleted_at": "is.null",
        "date": 'in.("2024-05-06","a\\"b")',
    }


def test_select_builds_query(client, mocker):
    get = mocker.patch("requests.get", return_value=_response([{"menu_id": 1}]))

    rows = TableService(client).select("MenuItem", "menu_id,name", eq={"name": "Curry"}, order="menu_id.asc", limit=5)

    assert rows == [{"menu_id": 1}]
    args, kwargs = get.call_args
    assert args[0] == "http://supabase.test/rest/v1/MenuItem"
    assert kwargs["params"] == {"select": "menu_id,name", "name": "eq.Curry", "order": "menu_id.asc", "limit": "5"}


def test_select_one_empty(client, mocker):
    mocker.patch("requests.get", return_value=_response([]))
    assert TableService(client).select_one("Profiles", eq={"id": "x"}) is None


def test_update_requests_representation(client, mocker):
    patch = mocker.patch("requests.patch", return_value=_response([{"id": 1}, {"id": 2}]))

    rows = TableService(client).update("StoreMenuItem", {"status": False}, eq={"store_id": "S1", "menu_name": "Curry"})

    assert len(rows) == 2
    kwargs = patch.call_args.kwargs
    assert kwargs["headers"]["Prefer"] == "return=representation"
    assert kwargs["params"] == {"store_id": "eq.S1", "menu_name": "eq.Curry"}
    assert kwargs["json"] == {"status": False}


def test_insert_and_delete(client, mocker):
    post = mocker.patch("requests.post", return_value=_response([{"id": "u1"}]))
    delete = mocker.patch("requests.delete", return_value=_response([]))
    tables = TableService(client)

    assert tables.insert("Profiles", [{"id": "u1"}]) == [{"id": "u1"}]
    assert tables.delete("Profiles", eq={"id": "u1"}) == []
    assert post.call_args.kwargs["json"] == [{"id": "u1"}]
    assert delete.call_args.kwargs["params"] == {"id": "eq.u1"}
