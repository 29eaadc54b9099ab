import uuid

import pytest

from taskmanager.models import Task, User, UserRole
from taskmanager.query import MAX_PAGE
from taskmanager.security import verify_password

from tests.conftest import auth_headers, make_task, make_user


@pytest.mark.parametrize(
    "method, path",
    [("GET", "/api/users"), ("POST", "/api/users"), ("PUT", "/api/users/x"), ("DELETE", "/api/users/x")],
)
def test_member_is_forbidden(client, settings, alice, method, path):
    response = client.request(method, path, headers=auth_headers(alice, settings))
    assert response.status_code == 403
    assert response.json() == {"success": False, "message": "Admin access required"}


def test_list_users_paginated(client, settings, db_session, admin):
    for index in range(4):
        make_user(db_session, f"user{index}@example.com")

    response = client.get("/api/users", params={"limit": 2}, headers=auth_headers(admin, settings))
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["pagination"] == {"page": 1, "limit": 2, "total": 5, "pages": 3}
    assert len(data["users"]) == 2
    assert all("password_hash" not in user for user in data["users"])


@pytest.mark.parametrize("params", [{"limit": 500}, {"page": 0}, {"page": MAX_PAGE + 1}, {"page": 10**19}])
def test_list_users_rejects_bad_paging(client, settings, admin, params):
    response = client.get("/api/users", params=params, headers=auth_headers(admin, settings))
    assert response.status_code == 400


def test_admin_creates_user(client, settings, admin):
    headers = auth_headers(admin, settings)
    payload = {"email": "staff@example.com", "password": "staffpass", "role": "admin"}

    response = client.post("/api/users", json=payload, headers=headers)
    assert response.status_code == 201
    assert response.json()["data"]["user"]["role"] == "admin"

    response = client.post("/api/users", json=payload, headers=headers)
    assert response.status_code == 409

    response = client.post("/api/users", json={"email": "bad", "password": "staffpass"}, headers=headers)
    assert response.status_code == 400


def test_admin_updates_user(client, settings, db_session, admin, alice):
    response = client.put(
        f"/api/users/{alice.id}",
        json={"email": "alice.new@example.com", "password": "fresh-password", "role": "admin"},
        headers=auth_headers(admin, settings),
    )
    assert response.status_code == 200
    user = response.json()["data"]["user"]
    assert user["email"] == "alice.new@example.com"
    assert user["role"] == "admin"

    db_session.expire_all()
    stored = db_session.get(User, alice.id)
    assert stored.role == UserRole.ADMIN
    assert verify_password("fresh-password", stored.password_hash)


def test_update_user_errors(client, settings, admin, alice, bob):
    headers = auth_headers(admin, settings)

    assert client.put(f"/api/users/{alice.id}", json={}, headers=headers).status_code == 400
    assert client.put(f"/api/users/{alice.id}", json={"role": "owner"}, headers=headers).status_code == 400
    assert client.put(f"/api/users/{uuid.uuid4()}", json={"role": "user"}, headers=headers).status_code == 404

    response = client.put(f"/api/users/{alice.id}", json={"email": "bob@example.com"}, headers=headers)
    assert response.status_code == 409


def test_delete_user_cascades(client, settings, db_session, admin, alice, bob):
    created = make_task(db_session, alice, "Alice's task")
    assigned = make_task(db_session, bob, "Bob's task", assignee=alice)
    created_id, assigned_id, alice_id = created.id, assigned.id, alice.id

    response = client.delete(f"/api/users/{alice_id}", headers=auth_headers(admin, settings))
    assert response.status_code == 200
    assert response.json()["message"] == "User deleted successfully"

    db_session.expire_all()
    assert db_session.get(User, alice_id) is None
    assert db_session.get(Task, created_id) is None
    remaining = db_session.get(Task, assigned_id)
    assert remaining is not None
    assert remaining.assigned_to is None


def test_delete_missing_user(client, settings, admin):
    response = client.delete(f"/api/users/{uuid.uuid4()}", headers=auth_headers(admin, settings))
    assert response.status_code == 404
    assert response.json()["message"] == "User not found"
