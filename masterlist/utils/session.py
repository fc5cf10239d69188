"""Session holder - the authenticated identity for one caller.

The request bootstrap (see ``masterlist.api.deps.get_session_holder``) is the
only writer; handlers receive the holder and read from it.
"""
from datetime import datetime, timezone
from typing import Any, Mapping, NamedTuple, Optional

from masterlist.utils.access import Role, normalize_role


class SessionUser(NamedTuple):
    """Snapshot of the authenticated user record"""
    uid: str
    email: str
    username: str
    role: Role
    display_name: Optional[str] = None


class SessionHolder:
    def __init__(self) -> None:
        self._user: Optional[SessionUser] = None
        self.last_activity: Optional[datetime] = None
        self.token_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def role(self) -> Optional[Role]:
        return self._user.role if self._user else None

    def get(self) -> Optional[SessionUser]:
        return self._user

    def set(self, user: SessionUser, token_id: Optional[str] = None) -> None:
        self._user = user
        self.token_id = token_id
        self.touch()

    def clear(self) -> None:
        self._user = None
        self.token_id = None
        self.last_activity = None

    def touch(self) -> None:
        self.last_activity = datetime.now(timezone.utc)

    def restore(self, claims: Mapping[str, Any]) -> bool:
        """
        Rebuild the session from token claims.

        Sessions issued before roles were embedded carry only an email; they
        come back as moderators. A role that cannot be recognized leaves the
        holder empty.
        """
        email = claims.get("email")
        if not email:
            self.clear()
            return False

        raw_role = claims.get("role")
        role = normalize_role(raw_role) if raw_role else Role.MODERATOR
        if role is None:
            self.clear()
            return False

        self.set(
            SessionUser(
                uid=claims.get("sub") or "",
                email=email,
                username=claims.get("username") or email.split("@")[0],
                role=role,
                display_name=claims.get("display_name"),
            ),
            token_id=claims.get("jti"),
        )
        return True
