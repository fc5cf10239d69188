"""Tests for the session holder"""
from masterlist.utils.access import Role
from masterlist.utils.session import SessionHolder, SessionUser


def test_empty_holder():
    holder = SessionHolder()
    assert holder.is_authenticated is False
    assert holder.role is None
    assert holder.get() is None


def test_set_and_clear():
    holder = SessionHolder()
    holder.set(SessionUser("usr_1", "a@example.com", "a", Role.ADMINISTRATOR), token_id="jti-1")
    assert holder.is_authenticated is True
    assert holder.role == Role.ADMINISTRATOR
    assert holder.token_id == "jti-1"
    assert holder.last_activity is not None

    holder.clear()
    assert holder.get() is None
    assert holder.token_id is None


def test_last_write_wins():
    holder = SessionHolder()
    holder.set(SessionUser("usr_1", "a@example.com", "a", Role.ADMINISTRATOR))
    holder.set(SessionUser("usr_2", "b@example.com", "b", Role.MODERATOR))
    assert holder.get().uid == "usr_2"
    assert holder.role == Role.MODERATOR


def test_restore_from_claims():
    holder = SessionHolder()
    assert holder.restore({
        "sub": "usr_1",
        "email": "a@example.com",
        "username": "a",
        "role": "administrator",
        "display_name": "A",
        "jti": "jti-1",
    }) is True
    user = holder.get()
    assert user.uid == "usr_1"
    assert user.role == Role.ADMINISTRATOR
    assert user.display_name == "A"
    assert holder.token_id == "jti-1"


def test_restore_legacy_session_without_role_is_moderator():
    holder = SessionHolder()
    assert holder.restore({"email": "old@example.com"}) is True
    assert holder.role == Role.MODERATOR
    assert holder.get().username == "old"


def test_restore_normalizes_legacy_admin_role():
    holder = SessionHolder()
    holder.restore({"email": "a@example.com", "role": "admin"})
    assert holder.role == Role.ADMINISTRATOR


def test_restore_rejects_unknown_role():
    holder = SessionHolder()
    holder.set(SessionUser("usr_1", "a@example.com", "a", Role.ADMINISTRATOR))
    assert holder.restore({"email": "a@example.com", "role": "owner"}) is False
    assert holder.is_authenticated is False


def test_restore_requires_email():
    holder = SessionHolder()
    assert holder.restore({"sub": "usr_1", "role": "moderator"}) is False
    assert holder.is_authenticated is False
