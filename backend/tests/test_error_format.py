from __future__ import annotations

from fastapi import APIRouter
from fastapi.testclient import TestClient


def _assert_error_shape(res, *, error: str | None = None):
    data = res.json()
    assert isinstance(data, dict)
    assert data.get("success") is False
    assert isinstance(data.get("error"), str) and data["error"]
    assert isinstance(data.get("message"), str) and data["message"]
    if error is not None:
        assert data["error"] == error


def _add_boom_route(app):
    router = APIRouter()

    @router.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    app.include_router(router)


def test_error_shape_401_missing_token(anon_client):
    res = anon_client.get("/auth/me")
    assert res.status_code == 401
    _assert_error_shape(res, error="UNAUTHORIZED")


def test_error_shape_404_not_found(client):
    res = client.get("/videos/999999")
    assert res.status_code == 404
    _assert_error_shape(res, error="NOT_FOUND")


def test_error_shape_409_conflict(anon_client, users):
    res = anon_client.post(
        "/auth/register",
        json={"name": "Dup", "email": "alice@example.com", "username": "someone", "password": "Abcdef1"},
    )
    assert res.status_code == 409
    _assert_error_shape(res, error="CONFLICT")
    assert res.json()["message"] == "Email already exists"


def test_error_shape_422_request_validation_error(anon_client):
    res = anon_client.post("/auth/login", json={"identifier": ""})
    assert res.status_code == 422
    _assert_error_shape(res, error="VALIDATION_ERROR")
    body = res.json()
    assert body["message"] == "Invalid request payload"
    assert isinstance(body.get("errors"), list) and body["errors"]


def test_error_shape_400_carries_structured_errors(anon_client):
    res = anon_client.post(
        "/auth/register",
        json={"name": "W", "email": "weak@example.com", "username": "weak", "password": "password"},
    )
    assert res.status_code == 400
    _assert_error_shape(res, error="VALIDATION_ERROR")
    assert res.json()["errors"][0]["code"] == "WEAK_PASSWORD"


def test_unhandled_error_is_500_with_stack_outside_prod(app):
    _add_boom_route(app)
    with TestClient(app, raise_server_exceptions=False) as c:
        res = c.get("/boom")
    assert res.status_code == 500
    _assert_error_shape(res, error="INTERNAL_ERROR")
    body = res.json()
    assert body["message"] == "Something went wrong"
    assert "kaboom" in body["stack"]


def test_unhandled_error_hides_stack_in_prod(app, settings):
    _add_boom_route(app)
    settings.ENV = "prod"
    with TestClient(app, raise_server_exceptions=False) as c:
        res = c.get("/boom")
    assert res.status_code == 500
    assert "stack" not in res.json()
    assert "kaboom" not in res.text


def test_unknown_route_uses_error_shape(anon_client):
    res = anon_client.get("/nope")
    assert res.status_code == 404
    _assert_error_shape(res, error="NOT_FOUND")


def test_health(anon_client):
    assert anon_client.get("/health").json() == {"status": "ok"}
