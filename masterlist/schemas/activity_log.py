"""Activity log schemas"""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, model_validator


class FieldChange(BaseModel):
    """One field-level edit: ``{"field", "display_name", "from", "to"}``"""

    field: str
    display_name: str
    from_: str = Field(..., alias="from")
    to: str

    class Config:
        frozen = True
        populate_by_name = True


class ActivityEntry(BaseModel):
    """A stored activity log entry. Immutable once read."""

    log_id: str
    timestamp: str = Field(..., description="Fixed-width ISO-8601 UTC, e.g. 2024-05-01T12:00:00.000000Z")
    type: str
    user: str
    subject: Optional[str] = None
    category: str
    details: Optional[str] = None
    changes: Optional[Tuple[FieldChange, ...]] = None
    metadata: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def map_log_metadata(cls, data):
        """Map log_metadata attribute to metadata field"""
        # Handle SQLAlchemy model objects
        if hasattr(data, "__dict__") and hasattr(data, "log_metadata"):
            return {
                "log_id": data.log_id,
                "timestamp": data.timestamp,
                "type": data.type,
                "user": data.user,
                "subject": data.subject,
                "category": data.category,
                "details": data.details,
                "changes": data.changes,
                "metadata": data.log_metadata,
            }
        return data

    @property
    def recorded_at(self) -> datetime:
        return datetime.strptime(self.timestamp, "%Y-%m-%dT%H:%M:%S.%fZ")


class LogFilters(BaseModel):
    """Filters accepted by ActivityLogger.query and GET /logs"""

    type: str = Field("all", description="'all' or an action kind, case-insensitive")
    date_range: Literal["all", "today", "week", "month"] = "all"
    user: Optional[str] = Field(None, description="Case-insensitive substring of the actor")
    limit: Optional[int] = Field(None, ge=1, description="Newest N entries read before filtering")
    page: int = Field(1, ge=1)
    page_size: Optional[int] = Field(None, ge=1)


class ActivityLogPage(BaseModel):
    page: int
    page_size: Optional[int]
    count: int
    entries: List[ActivityEntry]
