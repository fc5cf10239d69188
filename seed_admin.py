"""
First administrator bootstrap

Creates the first administrator account when the users table is empty, then
lifts the first-time restriction so the dashboard becomes usable.

Reads:
  SEED_ADMIN_EMAIL     (required)
  SEED_ADMIN_PASSWORD  (required)
  SEED_ADMIN_USERNAME  (default: part of the email before '@')

Run after `alembic upgrade head`:
  python seed_admin.py
"""
import os
import sys

from masterlist.database import SessionLocal
from masterlist.models.site_flag import FIRST_TIME_RESTRICTION
from masterlist.models.user import User
from masterlist.utils.activity import ActionKind, ActivityLogger, SqlLogStore
from masterlist.utils.credentials import CredentialStore
from masterlist.utils.flags import write_flags


def seed_admin(email: str, password: str, username: str = None) -> str:
    """Create the first administrator. Returns its uid, or '' if users already exist."""
    db = SessionLocal()
    try:
        if db.query(User).count() > 0:
            print("[*] Users already exist, nothing to do")
            return ""

        username = username or email.split("@")[0]
        uid = CredentialStore(db).insert({
            "email": email,
            "username": username,
            "password": password,
            "role": "administrator",
            "active": True,
            "created_by": "system",
        })
        print(f"[+] Created administrator {username} ({uid})")

        ActivityLogger(SqlLogStore(db)).log_user_activity(
            ActionKind.ADMIN_EDIT, "system", username, action="create", role="administrator",
        )

        write_flags(db, {FIRST_TIME_RESTRICTION: False}, "system")
        print("[+] First-time restriction lifted")
        return uid
    finally:
        db.close()


if __name__ == "__main__":
    email = os.environ.get("SEED_ADMIN_EMAIL")
    password = os.environ.get("SEED_ADMIN_PASSWORD")
    if not email or not password:
        print("[-] Set SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD")
        sys.exit(1)
    seed_admin(email, password, os.environ.get("SEED_ADMIN_USERNAME"))
