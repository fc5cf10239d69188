"""Activity logging: append-only audit trail of character and user mutations.

Writes are best effort. A failed write is rolled back, logged and counted,
and the business operation that triggered it still succeeds. Reads are
always newest first.

Subscribers get the current result set as soon as they subscribe and again
after every append, on the appending thread.
"""
import csv
import threading
from datetime import datetime, timedelta, timezone
from enum import Enum
from io import StringIO
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from masterlist.config import settings
from masterlist.middleware.monitoring import record_activity_failure, record_activity_write
from masterlist.models.activity_log import ActivityLog
from masterlist.schemas.activity_log import ActivityEntry, LogFilters
from masterlist.utils.diff import FieldDiff, format_change
from masterlist.utils.logger import logger

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

CATEGORY_CHARACTER = "CHARACTER"
CATEGORY_USER = "USER"


class ActionKind(str, Enum):
    UPLOAD = "UPLOAD"
    EDIT = "EDIT"
    DELETE = "DELETE"
    CREATE = "CREATE"
    USER_EDIT = "USER_EDIT"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"
    ROLE_CHANGE = "ROLE_CHANGE"
    ADMIN_EDIT = "ADMIN_EDIT"


# Kinds that only ever describe accounts
_USER_KINDS = {
    ActionKind.CREATE,
    ActionKind.USER_EDIT,
    ActionKind.PASSWORD_CHANGE,
    ActionKind.ROLE_CHANGE,
    ActionKind.ADMIN_EDIT,
}


class InvalidActionKind(ValueError):
    def __init__(self, kind: Any):
        self.kind = kind
        valid = ", ".join(k.value for k in ActionKind)
        super().__init__(f"Invalid action type: {kind}. Must be one of: {valid}")


def parse_action_kind(kind: Union[ActionKind, str]) -> ActionKind:
    if isinstance(kind, ActionKind):
        return kind
    try:
        return ActionKind(kind)
    except ValueError:
        raise InvalidActionKind(kind)


def format_timestamp(moment: datetime) -> str:
    """Render a datetime as the fixed-width UTC string stored on entries."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment.strftime(TIMESTAMP_FORMAT)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Change feed
# ---------------------------------------------------------------------------

Listener = Callable[[List[ActivityEntry]], None]


class ChangeFeed:
    """Process-wide registry of log store listeners"""

    def __init__(self):
        self._lock = threading.Lock()
        self._listeners: Dict[int, tuple] = {}
        self._next_token = 0

    def add(self, listener: Listener, limit: Optional[int]) -> int:
        with self._lock:
            self._next_token += 1
            token = self._next_token
            self._listeners[token] = (listener, limit)
            return token

    def remove(self, token: int) -> bool:
        with self._lock:
            return self._listeners.pop(token, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._listeners.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)

    def publish(self, store: "SqlLogStore") -> None:
        with self._lock:
            listeners = list(self._listeners.values())
        for listener, limit in listeners:
            try:
                entries = store.query_ordered_by_timestamp(limit)
            except SQLAlchemyError as e:
                logger.warning("Activity feed refresh failed", extra={"error": str(e)})
                continue
            deliver(listener, entries)


change_feed = ChangeFeed()


def deliver(listener: Listener, entries: List[ActivityEntry]) -> None:
    try:
        listener(entries)
    except Exception as e:
        logger.warning("Activity listener failed", extra={"error": str(e)}, exc_info=True)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class SqlLogStore:
    """Log store backed by the activity_logs table"""

    def __init__(self, db: Session, feed: ChangeFeed = change_feed):
        self.db = db
        self.feed = feed

    def append(self, fields: Mapping[str, Any]) -> ActivityEntry:
        """Insert one entry and notify subscribers."""
        entry = self.insert(fields)
        self.publish()
        return entry

    def insert(self, fields: Mapping[str, Any]) -> ActivityEntry:
        row = ActivityLog(
            timestamp=fields["timestamp"],
            type=fields["type"],
            user=fields["user"],
            subject=fields.get("subject"),
            category=fields["category"],
            details=fields.get("details"),
            changes=fields.get("changes"),
            log_metadata=fields.get("metadata"),
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return ActivityEntry.model_validate(row)

    def publish(self) -> None:
        self.feed.publish(self)

    def rollback(self) -> None:
        self.db.rollback()

    def query_ordered_by_timestamp(self, limit: Optional[int] = None) -> List[ActivityEntry]:
        """Newest entries first, at most ``limit`` of them"""
        q = self.db.query(ActivityLog).order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
        if limit:
            q = q.limit(limit)
        return [ActivityEntry.model_validate(row) for row in q.all()]

    def last_timestamp(self) -> Optional[str]:
        row = self.db.query(ActivityLog.timestamp).order_by(ActivityLog.timestamp.desc()).first()
        return row[0] if row else None

    def subscribe(self, listener: Listener, limit: Optional[int] = None) -> Callable[[], None]:
        """Register ``listener`` and deliver the current entries to it right away.

        Returns an unsubscribe function; calling it more than once is harmless.
        """
        token = self.feed.add(listener, limit)
        deliver(listener, self.query_ordered_by_timestamp(limit))

        def unsubscribe() -> None:
            self.feed.remove(token)

        return unsubscribe


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------

def range_start(date_range: str, now: datetime) -> Optional[datetime]:
    """Earliest timestamp included by a date range, or None for 'all'"""
    now = now.astimezone(timezone.utc) if now.tzinfo else now.replace(tzinfo=timezone.utc)
    if date_range == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if date_range == "week":
        return now - timedelta(days=7)
    if date_range == "month":
        return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return None


def apply_filters(entries: Iterable[ActivityEntry], filters: LogFilters, now: datetime) -> List[ActivityEntry]:
    result = list(entries)

    if filters.type and filters.type.lower() != "all":
        wanted = filters.type.upper()
        result = [e for e in result if e.type.upper() == wanted]

    start = range_start(filters.date_range, now)
    if start is not None:
        cutoff = format_timestamp(start)
        result = [e for e in result if e.timestamp >= cutoff]

    if filters.user:
        needle = filters.user.lower()
        result = [e for e in result if needle in (e.user or "").lower()]

    result.sort(key=lambda e: e.timestamp, reverse=True)
    return result


def paginate(entries: List[ActivityEntry], page: int, page_size: Optional[int]) -> List[ActivityEntry]:
    if page_size is None:
        return entries if page == 1 else []
    start = (page - 1) * page_size
    return entries[start:start + page_size]


# ---------------------------------------------------------------------------
# Logger service
# ---------------------------------------------------------------------------

class ActivityLogger:
    def __init__(self, store: SqlLogStore, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock
        self._last_timestamp: Optional[str] = None

    def _next_timestamp(self) -> str:
        """Current time, nudged forward past the newest stored entry if needed."""
        if self._last_timestamp is None:
            self._last_timestamp = self.store.last_timestamp()
        stamp = format_timestamp(self.clock())
        if self._last_timestamp is not None and stamp <= self._last_timestamp:
            last = datetime.strptime(self._last_timestamp, TIMESTAMP_FORMAT)
            stamp = format_timestamp(last + timedelta(microseconds=1))
        self._last_timestamp = stamp
        return stamp

    def record(
        self,
        kind: Union[ActionKind, str],
        actor: str,
        subject: Optional[str],
        details: Optional[str] = None,
        changes: Optional[Sequence[Union[FieldDiff, Mapping[str, Any]]]] = None,
        category: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[ActivityEntry]:
        """
        Append one entry.

        Raises InvalidActionKind for an unknown kind before anything is
        written. Store failures are swallowed; None is returned instead of
        the entry.
        """
        kind = parse_action_kind(kind)
        if category is None:
            category = CATEGORY_USER if kind in _USER_KINDS else CATEGORY_CHARACTER

        stored_changes = None
        if changes:
            stored_changes = [c.as_dict() if isinstance(c, FieldDiff) else dict(c) for c in changes]

        fields = {
            "type": kind.value,
            "user": actor or "Unknown User",
            "subject": subject,
            "category": category,
            "details": details,
            "changes": stored_changes,
            "metadata": metadata,
        }

        try:
            fields["timestamp"] = self._next_timestamp()
            entry = self.store.insert(fields)
        except SQLAlchemyError as e:
            self.store.rollback()
            record_activity_failure(kind.value)
            logger.warning(
                "Failed to record activity",
                extra={"action": kind.value, "user": actor, "subject": subject, "error": str(e)},
            )
            return None

        self.store.publish()
        record_activity_write(kind.value)
        logger.info(
            f"Logged {kind.value} activity",
            extra={"action": kind.value, "user": actor, "subject": subject, "log_id": entry.log_id},
        )
        return entry

    def log_user_activity(self, kind: Union[ActionKind, str], actor: str, target: str, **data) -> Optional[ActivityEntry]:
        """Record an account event with the standard details text for its kind."""
        kind = parse_action_kind(kind)
        return self.record(
            kind,
            actor,
            target or actor,
            details=describe_user_activity(kind, target, **data),
            category=CATEGORY_USER,
            metadata=data or None,
        )

    def query(self, filters: Optional[LogFilters] = None) -> List[ActivityEntry]:
        filters = filters or LogFilters()
        limit = filters.limit
        if limit is not None:
            limit = min(limit, settings.LOG_QUERY_MAX_LIMIT)
        entries = self.store.query_ordered_by_timestamp(limit)
        filtered = apply_filters(entries, filters, self.clock())
        return paginate(filtered, filters.page, filters.page_size)

    def subscribe(self, callback: Listener, filters: Optional[LogFilters] = None) -> Callable[[], None]:
        """Watch the log. ``callback`` gets the filtered entries now and after each append."""
        filters = filters or LogFilters()

        def on_change(entries: List[ActivityEntry]) -> None:
            callback(apply_filters(entries, filters, self.clock()))

        return self.store.subscribe(on_change, filters.limit)


def describe_user_activity(kind: Union[ActionKind, str], target: Optional[str], **data) -> str:
    """Details text for an account event"""
    kind = parse_action_kind(kind)

    if kind == ActionKind.USER_EDIT:
        old = data.get("old_username") or "Unknown"
        new = data.get("new_username") or "Unknown"
        return f'Username changed from "{old}" to "{new}"'
    if kind == ActionKind.PASSWORD_CHANGE:
        return "Password updated"
    if kind == ActionKind.ROLE_CHANGE:
        old = data.get("old_role") or "Unknown"
        new = data.get("new_role") or "Unknown"
        return f'Role changed from "{old}" to "{new}"'
    if kind == ActionKind.ADMIN_EDIT:
        action = data.get("action")
        if action == "status_change":
            status = "Active" if data.get("new_status") else "Inactive"
            return f'"{target}" Account status changed to {status}'
        if action == "create":
            return f'Created user account "{target}"'
        if action == "delete":
            return f'Deleted account "{target}"'
        return data.get("details") or f'Admin action performed on "{target}"'
    if kind == ActionKind.CREATE:
        return f'Created user account "{target}"'
    if kind == ActionKind.DELETE:
        return f'Deleted account "{target}"'
    if kind == ActionKind.EDIT:
        return data.get("details") or "User profile updated"
    return data.get("details") or f"{kind.value} action performed"


def export_csv(entries: Iterable[ActivityEntry]) -> str:
    """Render entries as CSV: Timestamp, Type, User, Subject, Changes"""
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["Timestamp", "Type", "User", "Subject", "Changes"])
    for entry in entries:
        if entry.changes:
            summary = "; ".join(format_change(c.model_dump(by_alias=True)) for c in entry.changes)
        else:
            summary = entry.details or ""
        writer.writerow([entry.timestamp, entry.type, entry.user, entry.subject or "", summary])
    return buffer.getvalue()
