import logging

from fastapi.testclient import TestClient

from taskmanager.database import Database
from taskmanager.main import create_app
from taskmanager.models import User
from taskmanager.seed import seed_accounts

from tests.conftest import auth_headers, make_task


def test_health_endpoints(client):
    for path in ("/health", "/api/health"):
        response = client.get(path)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["status"] == "OK"
        assert body["data"]["environment"] == "test"


def test_unknown_route_uses_envelope(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Not Found"}


def test_unexpected_errors_become_generic_500(settings, caplog):
    app = create_app(settings)

    @app.get("/api/boom")
    def boom():
        raise RuntimeError("database exploded")

    with TestClient(app, raise_server_exceptions=False) as client, caplog.at_level(logging.ERROR):
        response = client.get("/api/boom")

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Internal server error"}
    assert "database exploded" not in response.text
    assert any("Unhandled error" in record.getMessage() for record in caplog.records)


def test_lifespan_disposes_pool(settings):
    database = Database(settings.database_url)
    disposed = []
    original = database.dispose

    def tracking_dispose():
        disposed.append(True)
        original()

    database.dispose = tracking_dispose
    with TestClient(create_app(settings, database=database)):
        assert not disposed
    assert disposed == [True]


def test_seed_accounts_is_idempotent():
    database = Database("sqlite://")
    database.create_all()
    db = database.session()
    try:
        created = seed_accounts(db)
        assert {user.email for user in created} == {"admin@example.com", "user@example.com"}
        assert seed_accounts(db) == []
        assert db.query(User).count() == 2
    finally:
        db.close()
        database.dispose()


def test_api_routes_are_rate_limited(settings):
    limited = settings.model_copy(update={"RATE_LIMIT_MAX_REQUESTS": 3})
    with TestClient(create_app(limited)) as client:
        statuses = [client.get("/api/health").status_code for _ in range(4)]
        assert statuses == [200, 200, 200, 429]

        response = client.get("/api/auth/me")
        assert response.status_code == 429
        assert response.json() == {
            "success": False,
            "message": "Too many requests from this IP, please try again later.",
        }

        assert client.get("/health").status_code == 200


def test_rate_limit_can_be_disabled(settings):
    unlimited = settings.model_copy(update={"RATE_LIMIT_MAX_REQUESTS": 1, "RATE_LIMIT_ENABLED": False})
    with TestClient(create_app(unlimited)) as client:
        assert {client.get("/api/health").status_code for _ in range(3)} == {200}


def test_rate_limit_notation(settings):
    assert settings.rate_limit == "10000 per 900 seconds"


def test_large_responses_are_compressed(client, settings, db_session, alice):
    for index in range(10):
        make_task(db_session, alice, f"Task {index}", description="details " * 40)

    response = client.get("/api/tasks", headers={**auth_headers(alice, settings), "Accept-Encoding": "gzip"})
    assert response.status_code == 200
    assert response.headers["content-encoding"] == "gzip"
    assert len(response.json()["data"]["tasks"]) == 10

    small = client.get("/health", headers={"Accept-Encoding": "gzip"})
    assert "content-encoding" not in small.headers


def test_security_headers(client):
    response = client.get("/health")
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "SAMEORIGIN"
    assert response.headers["referrer-policy"] == "no-referrer"
