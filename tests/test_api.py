"""End-to-end tests for the HTTP surface using FastAPI's TestClient."""

import logging
import os
import sys
from datetime import timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from wellbeing.core.config import settings
from wellbeing.core.security import issue_access_token, verify_token
from wellbeing.crud.usage import get_usage_record, record_observation
from wellbeing.db.session import Base, get_db
from wellbeing.main import app
from wellbeing.models.usage import UsageRecord
from wellbeing.services.windows import current_day


@pytest.fixture()
def session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    try:
        yield factory
    finally:
        engine.dispose()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _register_and_login(client, username="ada", password="s3cret") -> tuple[int, str]:
    registered = client.post("/register", json={"username": username, "password": password})
    assert registered.status_code == 201
    login = client.post("/login", json={"username": username, "password": password})
    assert login.status_code == 200
    return registered.json()["userId"], login.json()["token"]


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_index_and_health(client):
    assert client.get("/").text == "Welcome to the Browser Wellbeing Tracker API!"
    response = client.get("/health")
    assert response.json() == {"ok": True}
    assert response.headers["X-Request-ID"]


def test_register_returns_user_id(client):
    response = client.post("/register", json={"username": "ada", "password": "s3cret"})

    assert response.status_code == 201
    assert response.json() == {"message": "User registered successfully", "userId": 1}


def test_register_duplicate_username_conflicts(client):
    client.post("/register", json={"username": "ada", "password": "s3cret"})
    response = client.post("/register", json={"username": "ada", "password": "other"})

    assert response.status_code == 409
    assert response.json() == {"error": "Username already exists"}


@pytest.mark.parametrize(
    "body",
    [{}, {"username": "ada"}, {"password": "s3cret"}, {"username": "", "password": "s3cret"}],
)
def test_register_requires_both_fields(client, body):
    response = client.post("/register", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Username and password are required"}


def test_malformed_body_is_a_bad_request(client):
    response = client.post("/register", content=b"not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json() == {"error": "Malformed JSON body"}


def test_login_with_wrong_password_is_unauthorized(client):
    client.post("/register", json={"username": "ada", "password": "s3cret"})

    wrong = client.post("/login", json={"username": "ada", "password": "nope"})
    unknown = client.post("/login", json={"username": "bob", "password": "s3cret"})

    assert wrong.status_code == 401
    assert wrong.json() == {"error": "Invalid credentials"}
    assert unknown.status_code == 401


def test_login_requires_both_fields(client):
    response = client.post("/login", json={"username": "ada"})

    assert response.status_code == 400


def test_login_token_identifies_user(client):
    user_id, token = _register_and_login(client)

    assert user_id == 1
    assert verify_token(token) == user_id


def test_protected_routes_require_a_token(client):
    assert client.post("/track", json={"website_url": "a.com", "total_time_seconds": 1}).status_code == 401
    assert client.get("/dashboard").status_code == 401
    basic = client.get("/dashboard", headers={"Authorization": "Basic abc"})
    assert basic.status_code == 401
    assert basic.json() == {"error": "Authorization required"}


def test_invalid_token_is_forbidden(client):
    response = client.get("/dashboard", headers=_auth("garbage"))

    assert response.status_code == 403
    assert response.json() == {"error": "Invalid token"}


def test_expired_token_is_forbidden(client):
    user_id, _ = _register_and_login(client)
    expired = issue_access_token(user_id, expires_delta=timedelta(seconds=-30))

    response = client.post("/track", json={"website_url": "a.com", "total_time_seconds": 5}, headers=_auth(expired))

    assert response.status_code == 403


def test_track_then_dashboard_today(client, session_factory):
    user_id, token = _register_and_login(client)

    first = client.post(
        "/track",
        json={"website_url": "a.com", "website_title": "A", "total_time_seconds": 30},
        headers=_auth(token),
    )
    second = client.post(
        "/track",
        json={"website_url": "a.com", "website_title": "A2", "total_time_seconds": 20},
        headers=_auth(token),
    )

    assert first.status_code == 200
    assert first.json() == {"message": "Data saved successfully"}
    assert second.status_code == 200

    db = session_factory()
    try:
        record = get_usage_record(db, user_id, "a.com", current_day(settings.TRACKING_TZ))
        assert record.total_time_seconds == 50
        assert record.website_title == "A2"
    finally:
        db.close()

    dashboard = client.get("/dashboard", params={"range": "today"}, headers=_auth(token))
    assert dashboard.status_code == 200
    assert dashboard.json() == [{"website_url": "a.com", "total_time": 50}]


@pytest.mark.parametrize(
    "body",
    [
        {"total_time_seconds": 10},
        {"website_url": "a.com"},
        {"website_url": "", "total_time_seconds": 10},
        {"website_url": "a.com", "total_time_seconds": -5},
        {"website_url": "a.com", "total_time_seconds": "lots"},
        {"website_url": "a.com", "total_time_seconds": True},
        {"website_url": "a.com", "total_time_seconds": "7"},
    ],
)
def test_track_rejects_incomplete_observations(client, body):
    _, token = _register_and_login(client)

    response = client.post("/track", json=body, headers=_auth(token))

    assert response.status_code == 400
    assert "error" in response.json()
    assert client.get("/dashboard", headers=_auth(token)).json() == []


def test_dashboard_week_and_default_range(client, session_factory):
    user_id, token = _register_and_login(client)
    today = current_day(settings.TRACKING_TZ)
    monday = today - timedelta(days=today.weekday())

    client.post("/track", json={"website_url": "a.com", "total_time_seconds": 50}, headers=_auth(token))
    db = session_factory()
    try:
        record_observation(db, user_id, "b.com", None, 500, today=monday)
        record_observation(db, user_id, "c.com", None, 900, today=today - timedelta(days=7))
    finally:
        db.close()

    week = client.get("/dashboard", params={"range": "week"}, headers=_auth(token))
    assert week.json() == [
        {"website_url": "b.com", "total_time": 500},
        {"website_url": "a.com", "total_time": 50},
    ]

    unknown = client.get("/dashboard", params={"range": "month"}, headers=_auth(token))
    default = client.get("/dashboard", headers=_auth(token))
    assert unknown.json() == default.json()
    assert {"website_url": "a.com", "total_time": 50} in default.json()
    assert all(row["website_url"] != "c.com" for row in default.json())


def test_dashboard_is_scoped_to_the_caller(client):
    _, ada = _register_and_login(client, "ada")
    _, bob = _register_and_login(client, "bob")

    client.post("/track", json={"website_url": "a.com", "total_time_seconds": 50}, headers=_auth(ada))

    assert client.get("/dashboard", headers=_auth(bob)).json() == []


def test_extension_origin_passes_cors_preflight(client):
    response = client.options(
        "/track",
        headers={
            "Origin": "chrome-extension://abcdefghijklmnop",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization,content-type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "chrome-extension://abcdefghijklmnop"


def test_storage_fault_is_a_generic_server_error(client, session_factory):
    _, token = _register_and_login(client)
    UsageRecord.__table__.drop(bind=session_factory.kw["bind"])

    tracked = client.post("/track", json={"website_url": "a.com", "total_time_seconds": 5}, headers=_auth(token))
    dashboard = client.get("/dashboard", headers=_auth(token))

    assert tracked.status_code == 500
    assert tracked.json() == {"error": "Internal server error"}
    assert dashboard.status_code == 500
    assert dashboard.json() == {"error": "Internal server error"}


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/no-such-route")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_request_log_carries_ledger_details(client, caplog):
    _, token = _register_and_login(client)
    caplog.set_level(logging.INFO, logger="wellbeing.request")

    client.post("/track", json={"website_url": "a.com", "total_time_seconds": 5}, headers=_auth(token))
    client.get("/dashboard", params={"range": "week"}, headers=_auth(token))

    completed = [r.extra_data for r in caplog.records if r.getMessage() == "request.completed"]
    track_line = next(data for data in completed if data["path"] == "/track")
    dashboard_line = next(data for data in completed if data["path"] == "/dashboard")
    assert track_line["principal"] == "user:1"
    assert track_line["ledger"] == {"visit_date": current_day(settings.TRACKING_TZ).isoformat(), "seconds": 5}
    assert dashboard_line["ledger"] == {"window": "week", "sites": 1}
