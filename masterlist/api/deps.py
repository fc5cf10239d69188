"""API dependencies for sessions and access control.

Every guarded route goes through :func:`require_access`, which builds an
:class:`AccessRequest` from the caller's session and the stored restriction
flags and hands it to :func:`masterlist.utils.access.evaluate`. A denial is
raised as :class:`AccessDenied` and rendered by the handler in ``main.py``.

Sessions
--------
``Authorization: Bearer <JWT>`` is the only session carrier. A token that
fails to verify, or whose user has since been removed or deactivated, yields
an empty session rather than an error, so restriction flags still take
precedence over authentication in the decision.
"""
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from masterlist.config import settings
from masterlist.database import get_db
from masterlist.middleware.monitoring import record_access_decision
from masterlist.utils.access import (
    AccessRequest,
    Decision,
    RequiredRole,
    Role,
    evaluate,
    normalize_role,
)
from masterlist.utils.credentials import CredentialStore
from masterlist.utils.flags import read_flags
from masterlist.utils.jwt_utils import decode_access_token
from masterlist.utils.logger import logger
from masterlist.utils.session import SessionHolder, SessionUser

_bearer_scheme = HTTPBearer(auto_error=False)


class AccessDenied(Exception):
    """Raised by guarded routes when the evaluator denies access"""

    def __init__(self, decision: Decision, required_role: str = RequiredRole.ANY.value):
        self.decision = decision
        self.required_role = required_role
        super().__init__(decision.reason_code.value)


# ---------------------------------------------------------------------------
# Session bootstrap
# ---------------------------------------------------------------------------

def _revalidate(holder: SessionHolder, store: CredentialStore) -> None:
    """Refresh the session from the stored user, or end it if the user is gone."""
    current = holder.get()
    user = store.find_by_uid(current.uid) if current.uid else None
    if user is None:
        user = store.find_by_email(current.email)

    if user is None or not user.active:
        logger.info("Session user missing or inactive", extra={"uid": current.uid})
        holder.clear()
        return

    role = normalize_role(user.role)
    if role is None:
        holder.clear()
        return

    holder.set(
        SessionUser(
            uid=user.uid,
            email=user.email,
            username=user.username,
            role=role,
            display_name=user.display_name,
        ),
        token_id=holder.token_id,
    )


def get_session_holder(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> SessionHolder:
    """Restore the caller's session from the bearer token (empty if there is none)."""
    holder = SessionHolder()
    if not credentials:
        return holder

    try:
        claims = decode_access_token(credentials.credentials, db)
    except HTTPException:
        return holder

    if holder.restore(claims):
        _revalidate(holder, CredentialStore(db))

    if holder.is_authenticated:
        request.state.session_uid = holder.get().uid
        request.state.session_claims = claims
    return holder


def require_session(holder: SessionHolder = Depends(get_session_holder)) -> SessionHolder:
    """Plain authentication check for routes outside the page guard (e.g. /auth/session)."""
    if not holder.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return holder


# ---------------------------------------------------------------------------
# require_access factory
# ---------------------------------------------------------------------------

def decide(holder: SessionHolder, db: Session, required_role) -> Decision:
    """Evaluate access for the current caller without raising"""
    request = AccessRequest.build(
        has_session=holder.is_authenticated,
        role=holder.role,
        flags=read_flags(db),
        required_role=required_role,
    )
    decision = evaluate(request)
    record_access_decision(str(getattr(required_role, "value", required_role)), decision.reason_code.value)
    return decision


def require_access(required_role: RequiredRole = RequiredRole.ANY) -> Callable:
    """Return a FastAPI dependency that runs the access evaluator.

    Usage::

        @router.get("/users")
        def list_users(session: SessionHolder = Depends(require_access(RequiredRole.ADMINISTRATOR))):
            ...

    Resolves to the caller's :class:`SessionHolder` or raises :class:`AccessDenied`.
    """

    def _access_dep(
        holder: SessionHolder = Depends(get_session_holder),
        db: Session = Depends(get_db),
    ) -> SessionHolder:
        decision = decide(holder, db, required_role)
        if not decision.allowed:
            logger.info(
                "Access denied",
                extra={
                    "reason_code": decision.reason_code.value,
                    "required_role": required_role.value,
                    "uid": holder.get().uid if holder.is_authenticated else None,
                },
            )
            raise AccessDenied(decision, required_role.value)
        holder.touch()
        return holder

    # Give FastAPI a unique name so it doesn't collapse distinct dependencies
    _access_dep.__name__ = f"require_access_{required_role.value}"
    return _access_dep


# ---------------------------------------------------------------------------
# Flag control plane
# ---------------------------------------------------------------------------

def require_flag_admin(
    holder: SessionHolder = Depends(get_session_holder),
    x_admin_key: Optional[str] = Header(None),
) -> str:
    """Allow an administrator session or the X-Admin-Key header.

    Not routed through the evaluator: this is how maintenance mode and the
    first-time restriction get switched off again.

    Returns the actor name recorded against the change.
    """
    if x_admin_key:
        if x_admin_key == settings.ADMIN_API_KEY:
            return "admin-key"
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin key",
        )

    if not holder.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required. Provide Authorization: Bearer <token> or X-Admin-Key header.",
        )

    if holder.role != Role.ADMINISTRATOR:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator role required",
        )
    return holder.get().username
