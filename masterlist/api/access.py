"""Access decisions and restriction flag endpoints"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from masterlist.api.deps import decide, get_session_holder, require_flag_admin
from masterlist.database import get_db
from masterlist.middleware.rate_limit import get_rate_limit, limiter
from masterlist.schemas.access import DecisionResponse, FlagsResponse, FlagsUpdate
from masterlist.utils.access import PAGE_REQUIREMENTS, Decision, parse_toggle
from masterlist.utils.flags import FLAG_ALIASES, read_flags, write_flags
from masterlist.utils.session import SessionHolder

router = APIRouter(prefix="/access", tags=["access"])


def _to_response(decision: Decision, required_role: str, page: Optional[str] = None) -> DecisionResponse:
    return DecisionResponse(
        allowed=decision.allowed,
        redirect_target=decision.redirect_target,
        reason_code=decision.reason_code.value,
        required_role=required_role,
        page=page,
    )


@router.get("/evaluate", response_model=DecisionResponse)
def evaluate_access(
    required_role: str = Query("any", description="administrator | moderator | any"),
    holder: SessionHolder = Depends(get_session_holder),
    db: Session = Depends(get_db),
):
    """
    Evaluate access for the caller without enforcing it.

    Always returns 200; the browser page guard follows ``redirect_target``
    when ``allowed`` is false.
    """
    return _to_response(decide(holder, db, required_role), required_role)


@router.get("/pages/{page}", response_model=DecisionResponse)
def evaluate_page(
    page: str,
    holder: SessionHolder = Depends(get_session_holder),
    db: Session = Depends(get_db),
):
    """Evaluate access to one dashboard page by name (e.g. ``user-management``)."""
    required = PAGE_REQUIREMENTS.get(page)
    if required is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown page: {page}",
        )
    return _to_response(decide(holder, db, required), required.value, page)


@router.get("/flags", response_model=FlagsResponse)
def get_flags(db: Session = Depends(get_db)):
    """Current restriction flags (public, so the landing page can explain itself)."""
    return FlagsResponse(**read_flags(db)._asdict())


@router.put("/flags", response_model=FlagsResponse)
@limiter.limit(get_rate_limit("flags_write"))
def update_flags(
    request: Request,
    body: FlagsUpdate,
    actor: str = Depends(require_flag_admin),
    db: Session = Depends(get_db),
):
    """Set one or both restriction flags (administrator session or X-Admin-Key)."""
    flags = write_flags(db, body.model_dump(), actor)
    return FlagsResponse(**flags._asdict())


@router.post("/flags/{flag}", response_model=FlagsResponse)
@limiter.limit(get_rate_limit("flags_write"))
def toggle_flag(
    request: Request,
    flag: str,
    state: str = Query(..., description="enable | enabled | on | true | disable | disabled | off | false"),
    actor: str = Depends(require_flag_admin),
    db: Session = Depends(get_db),
):
    """Switch one flag with an on/off word, e.g. ``POST /access/flags/maintenance?state=enable``."""
    name = FLAG_ALIASES.get(flag.lower())
    if name is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown flag: {flag}",
        )

    enabled = parse_toggle(state)
    if enabled is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unrecognized state '{state}'. Use enable/disable, on/off or true/false.",
        )

    flags = write_flags(db, {name: enabled}, actor)
    return FlagsResponse(**flags._asdict())
