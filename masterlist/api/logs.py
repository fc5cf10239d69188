"""Activity log endpoints"""
from datetime import datetime, timezone
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from masterlist.api.deps import require_access
from masterlist.config import settings
from masterlist.database import get_db
from masterlist.middleware.rate_limit import get_rate_limit, limiter
from masterlist.schemas.activity_log import ActivityLogPage, LogFilters
from masterlist.utils.access import RequiredRole
from masterlist.utils.activity import ActivityLogger, SqlLogStore, export_csv
from masterlist.utils.session import SessionHolder

router = APIRouter(prefix="/logs", tags=["logs"])


def get_log_filters(
    type: str = Query("all", description="Action kind (UPLOAD, EDIT, ...) or 'all'"),
    date_range: Literal["all", "today", "week", "month"] = Query("all"),
    user: Optional[str] = Query(None, description="Substring of the acting username"),
    limit: Optional[int] = Query(None, ge=1, le=settings.LOG_QUERY_MAX_LIMIT),
) -> LogFilters:
    return LogFilters(type=type, date_range=date_range, user=user, limit=limit)


@router.get("", response_model=ActivityLogPage)
def query_logs(
    filters: LogFilters = Depends(get_log_filters),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.LOG_DEFAULT_PAGE_SIZE, ge=1, le=settings.LOG_QUERY_MAX_LIMIT),
    session: SessionHolder = Depends(require_access(RequiredRole.ANY)),
    db: Session = Depends(get_db),
):
    """
    Query the activity log, newest first.

    ``limit`` caps how many of the newest entries are read before the other
    filters apply, so a filtered page may hold fewer than ``limit`` entries.
    """
    filters = filters.model_copy(update={"page": page, "page_size": page_size})
    entries = ActivityLogger(SqlLogStore(db)).query(filters)
    return ActivityLogPage(page=page, page_size=page_size, count=len(entries), entries=entries)


@router.get("/export")
@limiter.limit(get_rate_limit("logs_export"))
def export_logs(
    request: Request,
    filters: LogFilters = Depends(get_log_filters),
    session: SessionHolder = Depends(require_access(RequiredRole.ANY)),
    db: Session = Depends(get_db),
):
    """Download every entry matching the filters as CSV."""
    entries = ActivityLogger(SqlLogStore(db)).query(filters)
    filename = f"activity_logs_{datetime.now(timezone.utc).strftime('%Y-%m-%d')}.csv"
    return Response(
        content=export_csv(entries),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
