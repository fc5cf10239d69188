"""Login, logout and session endpoints"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from masterlist.api.deps import require_session
from masterlist.config import settings
from masterlist.database import get_db
from masterlist.middleware.monitoring import record_auth_failure
from masterlist.middleware.rate_limit import get_rate_limit, limiter
from masterlist.schemas.auth import LoginRequest, SessionResponse, TokenResponse
from masterlist.utils.access import normalize_role
from masterlist.utils.authentication import MISSING_CREDENTIALS, authenticate, complete_login
from masterlist.utils.credentials import CredentialStore
from masterlist.utils.jwt_utils import create_session_token, revoke_token
from masterlist.utils.logger import logger
from masterlist.utils.session import SessionHolder

router = APIRouter(prefix="/auth", tags=["authentication"])


class LogoutResponse(BaseModel):
    revoked: bool


def _session_response(holder: SessionHolder) -> SessionResponse:
    user = holder.get()
    return SessionResponse(
        uid=user.uid,
        email=user.email,
        username=user.username,
        role=user.role.value,
        display_name=user.display_name,
        last_activity=holder.last_activity,
    )


@router.post("/login", response_model=TokenResponse)
@limiter.limit(get_rate_limit("login"))
def login(
    request: Request,
    body: LoginRequest,
    db: Session = Depends(get_db),
) -> TokenResponse:
    """
    Sign in with email and password.

    The returned token is sent as ``Authorization: Bearer <token>`` on every
    later call. Wrong email, wrong password and a deactivated account all
    get the same 401 response.
    """
    store = CredentialStore(db)
    result = authenticate(store, body.email, body.password)

    if not result.success:
        record_auth_failure(result.code)
        raise HTTPException(
            status_code=(
                status.HTTP_400_BAD_REQUEST
                if result.code == MISSING_CREDENTIALS
                else status.HTTP_401_UNAUTHORIZED
            ),
            detail={"error": result.error, "code": result.code},
        )

    user = complete_login(store, result.user, body.password)
    token, claims = create_session_token(user)

    logger.info("User logged in", extra={"uid": user.uid, "user": user.username, "action": "login"})

    return TokenResponse(
        access_token=token,
        expires_in=settings.JWT_SESSION_EXPIRE_SECONDS,
        user=SessionResponse(
            uid=user.uid,
            email=user.email,
            username=user.username,
            role=normalize_role(user.role).value,
            display_name=user.display_name,
        ),
    )


@router.post("/logout", response_model=LogoutResponse)
def logout(
    request: Request,
    holder: SessionHolder = Depends(require_session),
    db: Session = Depends(get_db),
) -> LogoutResponse:
    """End the current session. The token is rejected from now on."""
    claims = request.state.session_claims
    revoked = revoke_token(db, claims)
    logger.info("User logged out", extra={"uid": holder.get().uid, "action": "logout"})
    holder.clear()
    return LogoutResponse(revoked=revoked)


@router.get("/session", response_model=SessionResponse)
def current_session(holder: SessionHolder = Depends(require_session)) -> SessionResponse:
    """Snapshot of the signed-in user"""
    return _session_response(holder)
