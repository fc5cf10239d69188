"""Profile settings for the signed-in user"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from masterlist.api.deps import require_access
from masterlist.database import get_db
from masterlist.schemas.user import PasswordChange, ProfileUpdate, UserResponse
from masterlist.utils.access import RequiredRole
from masterlist.utils.activity import ActionKind, ActivityLogger, SqlLogStore
from masterlist.utils.credentials import CredentialStore, DuplicateCredential
from masterlist.utils.logger import logger
from masterlist.utils.passwords import verify_password
from masterlist.utils.session import SessionHolder

router = APIRouter(prefix="/profile", tags=["profile"])


def _current_user(store: CredentialStore, session: SessionHolder):
    user = store.find_by_uid(session.get().uid)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("", response_model=UserResponse)
def get_profile(
    session: SessionHolder = Depends(require_access(RequiredRole.ANY)),
    db: Session = Depends(get_db),
):
    return _current_user(CredentialStore(db), session)


@router.put("", response_model=UserResponse)
def update_profile(
    data: ProfileUpdate,
    session: SessionHolder = Depends(require_access(RequiredRole.ANY)),
    db: Session = Depends(get_db),
):
    """Change your own username or display name."""
    store = CredentialStore(db)
    user = _current_user(store, session)
    old_username = user.username

    partial = data.model_dump(exclude_unset=True)
    if "username" in partial:
        if partial["username"] is None or not partial["username"].strip():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username is required")
        partial["username"] = partial["username"].strip()

    try:
        user = store.update(user.uid, partial)
    except DuplicateCredential as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))

    if user.username != old_username:
        ActivityLogger(SqlLogStore(db)).log_user_activity(
            ActionKind.USER_EDIT,
            user.username,
            user.username,
            old_username=old_username,
            new_username=user.username,
        )
    return user


@router.post("/password", status_code=204)
def change_password(
    data: PasswordChange,
    session: SessionHolder = Depends(require_access(RequiredRole.ANY)),
    db: Session = Depends(get_db),
):
    """Change your own password. The current password must be supplied."""
    store = CredentialStore(db)
    user = _current_user(store, session)

    if not verify_password(data.current_password, user.password_hash):
        logger.info("Password change rejected", extra={"uid": user.uid, "reason_code": "bad_password"})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")

    store.update(user.uid, {"password": data.new_password})
    logger.info("Password changed", extra={"uid": user.uid, "action": "password_change"})

    ActivityLogger(SqlLogStore(db)).log_user_activity(ActionKind.PASSWORD_CHANGE, user.username, user.username)
    return None
