"""Tests for profile settings"""
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from conftest import MODERATOR_PASSWORD
from masterlist.models.activity_log import ActivityLog
from masterlist.models.user import User
from masterlist.utils.passwords import verify_password


def test_get_profile(client: TestClient, moderator_headers: dict):
    response = client.get("/profile", headers=moderator_headers)
    assert response.status_code == 200
    assert response.json()["email"] == "mod@example.com"


def test_change_username(client: TestClient, db: Session, moderator_headers: dict):
    response = client.put("/profile", json={"username": "modnew", "display_name": "M"}, headers=moderator_headers)
    assert response.status_code == 200
    assert response.json()["username"] == "modnew"

    entry = db.query(ActivityLog).filter(ActivityLog.type == "USER_EDIT").one()
    assert entry.user == "modnew"
    assert entry.details == 'Username changed from "mod" to "modnew"'


def test_display_name_only_is_not_logged(client: TestClient, db: Session, moderator_headers: dict):
    client.put("/profile", json={"display_name": "M"}, headers=moderator_headers)
    assert db.query(ActivityLog).count() == 0


def test_username_taken(client: TestClient, moderator_headers: dict, admin_user: User):
    assert client.put("/profile", json={"username": "admin"}, headers=moderator_headers).status_code == 409


def test_change_password(client: TestClient, db: Session, moderator_headers: dict, moderator_user: User):
    response = client.post(
        "/profile/password",
        json={"current_password": MODERATOR_PASSWORD, "new_password": "brand-new-pass"},
        headers=moderator_headers,
    )
    assert response.status_code == 204

    db.refresh(moderator_user)
    assert verify_password("brand-new-pass", moderator_user.password_hash)
    assert db.query(ActivityLog).filter(ActivityLog.type == "PASSWORD_CHANGE").count() == 1


def test_change_password_checks_current(client: TestClient, db: Session, moderator_headers: dict):
    response = client.post(
        "/profile/password",
        json={"current_password": "wrong", "new_password": "brand-new-pass"},
        headers=moderator_headers,
    )
    assert response.status_code == 400
    assert db.query(ActivityLog).count() == 0


def test_administrator_has_profile_too(client: TestClient, admin_headers: dict):
    assert client.get("/profile", headers=admin_headers).status_code == 200
