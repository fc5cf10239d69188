"""User management endpoints (administrators only)"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from masterlist.api.deps import require_access
from masterlist.database import get_db
from masterlist.schemas.user import UserCreate, UserResponse, UserStats, UserUpdate
from masterlist.utils.access import RequiredRole, Role, normalize_role
from masterlist.utils.activity import ActionKind, ActivityLogger, SqlLogStore
from masterlist.utils.credentials import CredentialStore, DuplicateCredential
from masterlist.utils.logger import logger
from masterlist.utils.session import SessionHolder

router = APIRouter(prefix="/users", tags=["users"])

_admin_only = require_access(RequiredRole.ADMINISTRATOR)


def _get_or_404(store: CredentialStore, uid: str):
    user = store.find_by_uid(uid)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {uid} not found",
        )
    return user


def _conflict(exc: DuplicateCredential) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))


@router.get("", response_model=List[UserResponse])
def list_users(
    session: SessionHolder = Depends(_admin_only),
    db: Session = Depends(get_db),
):
    """All accounts, newest first."""
    return CredentialStore(db).list_all()


@router.get("/stats", response_model=UserStats)
def user_stats(
    session: SessionHolder = Depends(_admin_only),
    db: Session = Depends(get_db),
):
    users = CredentialStore(db).list_all()
    roles = [normalize_role(u.role) for u in users]
    active = sum(1 for u in users if u.active)
    return UserStats(
        total=len(users),
        active=active,
        inactive=len(users) - active,
        administrators=roles.count(Role.ADMINISTRATOR),
        moderators=roles.count(Role.MODERATOR),
    )


@router.get("/{uid}", response_model=UserResponse)
def get_user(
    uid: str,
    session: SessionHolder = Depends(_admin_only),
    db: Session = Depends(get_db),
):
    return _get_or_404(CredentialStore(db), uid)


@router.post("", response_model=UserResponse, status_code=201)
def create_user(
    data: UserCreate,
    session: SessionHolder = Depends(_admin_only),
    db: Session = Depends(get_db),
):
    """Create an account. Emails are unique regardless of case."""
    admin = session.get()
    store = CredentialStore(db)

    record = data.model_dump()
    record["created_by"] = admin.uid
    try:
        uid = store.insert(record)
    except DuplicateCredential as exc:
        raise _conflict(exc)

    logger.info(f"Created user: {uid}", extra={"uid": uid, "role": data.role, "user": admin.username})

    ActivityLogger(SqlLogStore(db)).log_user_activity(
        ActionKind.ADMIN_EDIT,
        admin.username,
        data.username,
        action="create",
        email=data.email,
        role=data.role,
        active=data.active,
        performed_by_admin=True,
    )
    return store.find_by_uid(uid)


@router.put("/{uid}", response_model=UserResponse)
def update_user(
    uid: str,
    data: UserUpdate,
    session: SessionHolder = Depends(_admin_only),
    db: Session = Depends(get_db),
):
    """
    Update an account.

    Each kind of change is logged separately: USER_EDIT for a new username,
    ROLE_CHANGE, ADMIN_EDIT for activation status, PASSWORD_CHANGE when a
    password is set. An update that touches none of those logs a plain EDIT.
    """
    admin = session.get()
    store = CredentialStore(db)
    user = _get_or_404(store, uid)

    before_username = user.username
    before_role = normalize_role(user.role)
    before_role = before_role.value if before_role else user.role
    before_active = user.active

    # Only display_name may be cleared; a null anywhere else means "leave it"
    partial = {
        key: value
        for key, value in data.model_dump(exclude_unset=True).items()
        if value is not None or key == "display_name"
    }
    try:
        user = store.update(uid, partial)
    except DuplicateCredential as exc:
        raise _conflict(exc)

    logger.info(f"Updated user: {uid}", extra={"uid": uid, "user": admin.username, "action": "update_user"})

    activity = ActivityLogger(SqlLogStore(db))
    target = user.username
    logged = 0

    if data.username is not None and data.username != before_username:
        activity.log_user_activity(
            ActionKind.USER_EDIT, admin.username, target,
            old_username=before_username, new_username=data.username, performed_by_admin=True,
        )
        logged += 1

    if data.role is not None and data.role != before_role:
        activity.log_user_activity(
            ActionKind.ROLE_CHANGE, admin.username, target,
            old_role=before_role, new_role=data.role, performed_by_admin=True,
        )
        logged += 1

    if data.active is not None and data.active != before_active:
        activity.log_user_activity(
            ActionKind.ADMIN_EDIT, admin.username, target,
            action="status_change", new_status=data.active, performed_by_admin=True,
        )
        logged += 1

    if data.password:
        activity.log_user_activity(ActionKind.PASSWORD_CHANGE, admin.username, target, performed_by_admin=True)
        logged += 1

    if not logged:
        activity.log_user_activity(
            ActionKind.EDIT, admin.username, target,
            details="User profile updated by admin", performed_by_admin=True,
        )

    return user


@router.delete("/{uid}", status_code=204)
def delete_user(
    uid: str,
    session: SessionHolder = Depends(_admin_only),
    db: Session = Depends(get_db),
):
    """
    Delete an account's credentials.

    Activity entries that mention the account are kept. Administrators
    cannot delete their own account.
    """
    admin = session.get()
    if uid == admin.uid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account",
        )

    store = CredentialStore(db)
    user = _get_or_404(store, uid)
    username = user.username
    store.delete(uid)

    logger.info(f"Deleted user: {uid}", extra={"uid": uid, "user": admin.username, "action": "delete_user"})

    ActivityLogger(SqlLogStore(db)).log_user_activity(
        ActionKind.ADMIN_EDIT,
        admin.username,
        username,
        action="delete",
        performed_by_admin=True,
    )
    return None
