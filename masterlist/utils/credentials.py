"""Credential store backed by the users table"""
import secrets
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from masterlist.models.user import User
from masterlist.utils.passwords import hash_password

UID_PREFIX = "usr_"

# Columns an update may touch. Passwords go through ``password`` and are hashed here.
_UPDATABLE = {"email", "username", "display_name", "role", "active", "last_login", "password_hash"}


def generate_uid() -> str:
    return f"{UID_PREFIX}{secrets.token_hex(8)}"


class DuplicateCredential(ValueError):
    """Raised when an email or username is already taken"""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"User with this {field} already exists")


class CredentialStore:
    """Lookup and mutation of user records.

    The store commits each mutation itself; callers hand it plain dicts.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        return self.db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()

    def find_by_uid(self, uid: str) -> Optional[User]:
        return self.db.query(User).filter(User.uid == uid).first()

    def find_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def list_all(self) -> List[User]:
        return self.db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()

    def insert(self, record: Dict[str, Any]) -> str:
        """Create a user from ``record`` (``password`` in plain text) and return its uid."""
        email = record["email"].strip().lower()
        if self.find_by_email(email):
            raise DuplicateCredential("email")
        if self.find_by_username(record["username"]):
            raise DuplicateCredential("username")

        user = User(
            uid=record.get("uid") or generate_uid(),
            email=email,
            username=record["username"],
            display_name=record.get("display_name"),
            role=record.get("role", "moderator"),
            password_hash=hash_password(record["password"]),
            active=record.get("active", True),
            created_by=record.get("created_by") or "system",
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user.uid

    def update(self, uid: str, partial: Dict[str, Any]) -> Optional[User]:
        """Apply ``partial`` to a user. Returns the updated record, or None if missing."""
        user = self.find_by_uid(uid)
        if user is None:
            return None

        changes = dict(partial)
        if changes.get("password"):
            changes["password_hash"] = hash_password(changes.pop("password"))
        changes.pop("password", None)

        if "email" in changes and changes["email"] is not None:
            changes["email"] = changes["email"].strip().lower()
            other = self.find_by_email(changes["email"])
            if other is not None and other.uid != uid:
                raise DuplicateCredential("email")
        if "username" in changes and changes["username"] is not None:
            other = self.find_by_username(changes["username"])
            if other is not None and other.uid != uid:
                raise DuplicateCredential("username")

        for key, value in changes.items():
            if key in _UPDATABLE:
                setattr(user, key, value)

        self.db.commit()
        self.db.refresh(user)
        return user

    def delete(self, uid: str) -> bool:
        user = self.find_by_uid(uid)
        if user is None:
            return False
        self.db.delete(user)
        self.db.commit()
        return True
