"""Tests for user management endpoints"""
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from masterlist.models.activity_log import ActivityLog
from masterlist.models.user import User


def _details(db: Session, kind: str):
    return [row.details for row in db.query(ActivityLog).filter(ActivityLog.type == kind).all()]


def test_list_users_newest_first(client: TestClient, admin_headers: dict, moderator_user: User):
    response = client.get("/users", headers=admin_headers)
    assert response.status_code == 200
    users = response.json()
    assert {u["username"] for u in users} == {"admin", "mod"}
    assert all("password_hash" not in u for u in users)


def test_moderator_cannot_manage_users(client: TestClient, moderator_headers: dict):
    response = client.post(
        "/users",
        json={"email": "x@example.com", "username": "x", "password": "secret-1"},
        headers=moderator_headers,
    )
    assert response.status_code == 403
    assert response.json()["redirect_target"] == "profile-settings"


def test_create_user(client: TestClient, db: Session, admin_headers: dict, admin_user: User):
    response = client.post(
        "/users",
        json={"email": "New@Example.com", "username": "newbie", "password": "secret-1", "role": "admin"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "new@example.com"
    assert data["role"] == "administrator"
    assert data["active"] is True
    assert data["uid"].startswith("usr_")
    assert data["created_by"] == admin_user.uid

    assert _details(db, "ADMIN_EDIT") == ['Created user account "newbie"']


def test_create_user_validation(client: TestClient, admin_headers: dict):
    bad_role = client.post(
        "/users",
        json={"email": "a@example.com", "username": "a", "password": "secret-1", "role": "owner"},
        headers=admin_headers,
    )
    assert bad_role.status_code == 422

    bad_email = client.post(
        "/users",
        json={"email": "not-an-email", "username": "a", "password": "secret-1"},
        headers=admin_headers,
    )
    assert bad_email.status_code == 422


def test_duplicate_email_is_case_insensitive(client: TestClient, admin_headers: dict, moderator_user: User):
    response = client.post(
        "/users",
        json={"email": "MOD@example.com", "username": "other", "password": "secret-1"},
        headers=admin_headers,
    )
    assert response.status_code == 409


def test_update_logs_each_change(client: TestClient, db: Session, admin_headers: dict, moderator_user: User):
    response = client.put(
        f"/users/{moderator_user.uid}",
        json={"username": "moderator2", "role": "administrator", "active": False, "password": "fresh-pass"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["username"] == "moderator2"
    assert data["role"] == "administrator"
    assert data["active"] is False

    assert _details(db, "USER_EDIT") == ['Username changed from "mod" to "moderator2"']
    assert _details(db, "ROLE_CHANGE") == ['Role changed from "moderator" to "administrator"']
    assert _details(db, "ADMIN_EDIT") == ['"moderator2" Account status changed to Inactive']
    assert _details(db, "PASSWORD_CHANGE") == ["Password updated"]
    assert _details(db, "EDIT") == []


def test_update_without_tracked_change_logs_plain_edit(
    client: TestClient, db: Session, admin_headers: dict, moderator_user: User
):
    response = client.put(
        f"/users/{moderator_user.uid}",
        json={"display_name": "The Moderator", "password": ""},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["display_name"] == "The Moderator"
    assert _details(db, "EDIT") == ["User profile updated by admin"]
    assert _details(db, "PASSWORD_CHANGE") == []


def test_update_missing_user(client: TestClient, admin_headers: dict):
    assert client.put("/users/usr_missing", json={"active": False}, headers=admin_headers).status_code == 404


def test_delete_user_keeps_activity(client: TestClient, db: Session, admin_headers: dict, moderator_user: User):
    db.add(ActivityLog(
        timestamp="2024-05-01T00:00:00.000000Z", type="UPLOAD", user="mod", subject="ML-001", category="CHARACTER"
    ))
    db.commit()

    response = client.delete(f"/users/{moderator_user.uid}", headers=admin_headers)
    assert response.status_code == 204
    assert db.query(User).filter(User.username == "mod").first() is None
    assert db.query(ActivityLog).filter(ActivityLog.user == "mod").count() == 1
    assert _details(db, "ADMIN_EDIT") == ['Deleted account "mod"']


def test_cannot_delete_own_account(client: TestClient, admin_headers: dict, admin_user: User):
    response = client.delete(f"/users/{admin_user.uid}", headers=admin_headers)
    assert response.status_code == 400


def test_stats(client: TestClient, db: Session, admin_headers: dict, moderator_user: User):
    moderator_user.active = False
    db.commit()

    response = client.get("/users/stats", headers=admin_headers)
    assert response.json() == {"total": 2, "active": 1, "inactive": 1, "administrators": 1, "moderators": 1}
