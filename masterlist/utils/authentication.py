"""Email/password authentication against the credential store"""
from datetime import datetime, timezone
from typing import NamedTuple, Optional

from masterlist.models.user import User
from masterlist.utils.access import normalize_role
from masterlist.utils.credentials import CredentialStore
from masterlist.utils.logger import logger
from masterlist.utils.passwords import hash_password, needs_rehash, verify_password

MISSING_CREDENTIALS = "MISSING_CREDENTIALS"
INVALID_CREDENTIALS = "INVALID_CREDENTIALS"

INVALID_MESSAGE = "Invalid email or password"


class AuthResult(NamedTuple):
    success: bool
    user: Optional[User] = None
    error: Optional[str] = None
    code: Optional[str] = None


def _denied(email: str, why: str) -> AuthResult:
    # One message for every cause so callers cannot probe which emails exist
    logger.info("Login rejected", extra={"user": email, "reason_code": why})
    return AuthResult(False, None, INVALID_MESSAGE, INVALID_CREDENTIALS)


def authenticate(store: CredentialStore, email: Optional[str], password: Optional[str]) -> AuthResult:
    """
    Check an email/password pair.

    Unknown email, wrong password, inactive account and a stored role that
    cannot be recognized all produce the same INVALID_CREDENTIALS result.
    Store errors are not caught.
    """
    email = (email or "").strip()
    if not email or not password:
        return AuthResult(False, None, "Email and password are required", MISSING_CREDENTIALS)

    user = store.find_by_email(email)
    if user is None:
        return _denied(email, "unknown_email")

    if not user.active:
        return _denied(email, "inactive")

    if not verify_password(password, user.password_hash):
        return _denied(email, "bad_password")

    if normalize_role(user.role) is None:
        logger.warning("User has an unrecognized role", extra={"uid": user.uid, "role": user.role})
        return _denied(email, "unknown_role")

    return AuthResult(True, user)


def complete_login(store: CredentialStore, user: User, password: str) -> User:
    """Stamp last_login, upgrade a legacy digest and canonicalize a legacy role."""
    partial = {"last_login": datetime.now(timezone.utc)}
    if needs_rehash(user.password_hash):
        partial["password_hash"] = hash_password(password)
    role = normalize_role(user.role)
    if role is not None and role.value != user.role:
        partial["role"] = role.value
    return store.update(user.uid, partial)
