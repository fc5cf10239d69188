"""Tests for the activity logger and log store"""
from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from masterlist.models.activity_log import ActivityLog
from masterlist.schemas.activity_log import LogFilters
from masterlist.utils.activity import (
    ActionKind,
    ActivityLogger,
    InvalidActionKind,
    SqlLogStore,
    describe_user_activity,
    export_csv,
)
from masterlist.utils.diff import diff

NOW = datetime(2024, 5, 15, 12, 0, 0, tzinfo=timezone.utc)


def fixed_clock():
    return NOW


def _append(store: SqlLogStore, timestamp: str, kind: str = "EDIT", user: str = "alice", subject: str = "ML-001"):
    return store.append({
        "timestamp": timestamp,
        "type": kind,
        "user": user,
        "subject": subject,
        "category": "CHARACTER",
        "details": f"{kind} by {user}",
    })


class FailingStore(SqlLogStore):
    def insert(self, fields):
        raise OperationalError("INSERT INTO activity_logs", {}, Exception("database is locked"))


class LockedStore(SqlLogStore):
    def last_timestamp(self):
        raise OperationalError("SELECT activity_logs.timestamp", {}, Exception("database is locked"))


class UnreadableStore(SqlLogStore):
    """Writes succeed, reads for subscribers fail"""

    readable = True

    def query_ordered_by_timestamp(self, limit=None):
        if not self.readable:
            raise OperationalError("SELECT activity_logs", {}, Exception("database is locked"))
        return super().query_ordered_by_timestamp(limit)


# ---------------------------------------------------------------------------
# record
# ---------------------------------------------------------------------------

def test_record_writes_entry(db: Session):
    activity = ActivityLogger(SqlLogStore(db))
    changes = diff({"owner": "alice"}, {"owner": "carol"})

    entry = activity.record(ActionKind.EDIT, "mod", "ML-001", details="Edited 1 field(s)", changes=changes)

    assert entry is not None
    assert entry.type == "EDIT"
    assert entry.user == "mod"
    assert entry.subject == "ML-001"
    assert entry.category == "CHARACTER"
    assert entry.changes[0].from_ == "alice"
    assert entry.changes[0].model_dump(by_alias=True)["to"] == "carol"
    assert db.query(ActivityLog).count() == 1


def test_unknown_kind_raises_before_writing(db: Session):
    activity = ActivityLogger(SqlLogStore(db))
    with pytest.raises(InvalidActionKind):
        activity.record("RENAME", "mod", "ML-001")
    with pytest.raises(ValueError):
        activity.record("edit", "mod", "ML-001")
    assert db.query(ActivityLog).count() == 0


def test_user_kinds_default_to_user_category(db: Session):
    activity = ActivityLogger(SqlLogStore(db))
    assert activity.record(ActionKind.ROLE_CHANGE, "admin", "mod").category == "USER"
    assert activity.record(ActionKind.UPLOAD, "admin", "ML-002").category == "CHARACTER"


def test_timestamps_are_fixed_width_and_strictly_increasing(db: Session):
    activity = ActivityLogger(SqlLogStore(db), clock=fixed_clock)
    entries = [activity.record(ActionKind.UPLOAD, "mod", f"ML-00{i}") for i in range(1, 4)]

    stamps = [e.timestamp for e in entries]
    assert all(len(s) == len("2024-05-15T12:00:00.000000Z") for s in stamps)
    assert stamps == sorted(stamps)
    assert len(set(stamps)) == 3
    assert stamps[0] == "2024-05-15T12:00:00.000000Z"


def test_store_failure_is_swallowed(db: Session):
    activity = ActivityLogger(FailingStore(db))
    assert activity.record(ActionKind.DELETE, "mod", "ML-001") is None


def test_timestamp_read_failure_is_swallowed(db: Session):
    activity = ActivityLogger(LockedStore(db))
    assert activity.record(ActionKind.UPLOAD, "mod", "ML-001") is None
    assert db.query(ActivityLog).count() == 0


def test_subscriber_refresh_failure_keeps_the_entry(db: Session):
    store = UnreadableStore(db)
    activity = ActivityLogger(store, clock=fixed_clock)
    received = []
    activity.subscribe(received.append)

    store.readable = False
    entry = activity.record(ActionKind.UPLOAD, "mod", "ML-001")

    assert entry is not None
    assert db.query(ActivityLog).count() == 1
    assert received == [[]]


def test_log_user_activity_uses_standard_details(db: Session):
    activity = ActivityLogger(SqlLogStore(db))
    entry = activity.log_user_activity(
        ActionKind.USER_EDIT, "admin", "newname", old_username="oldname", new_username="newname"
    )
    assert entry.details == 'Username changed from "oldname" to "newname"'
    assert entry.category == "USER"
    assert entry.metadata["old_username"] == "oldname"


# ---------------------------------------------------------------------------
# query
# ---------------------------------------------------------------------------

def test_query_is_newest_first(db: Session):
    store = SqlLogStore(db)
    _append(store, "2024-05-01T00:00:00.000000Z", subject="ML-001")
    _append(store, "2024-05-03T00:00:00.000000Z", subject="ML-003")
    _append(store, "2024-05-02T00:00:00.000000Z", subject="ML-002")

    entries = ActivityLogger(store, clock=fixed_clock).query()
    assert [e.subject for e in entries] == ["ML-003", "ML-002", "ML-001"]


def test_query_type_filter_is_case_insensitive(db: Session):
    store = SqlLogStore(db)
    _append(store, "2024-05-01T00:00:00.000000Z", kind="UPLOAD")
    _append(store, "2024-05-02T00:00:00.000000Z", kind="EDIT")

    activity = ActivityLogger(store, clock=fixed_clock)
    assert [e.type for e in activity.query(LogFilters(type="upload"))] == ["UPLOAD"]
    assert len(activity.query(LogFilters(type="ALL"))) == 2


@pytest.mark.parametrize("date_range,expected", [("today", 1), ("week", 2), ("month", 3), ("all", 4)])
def test_query_date_ranges(db: Session, date_range: str, expected: int):
    store = SqlLogStore(db)
    _append(store, "2024-05-15T08:00:00.000000Z")   # today
    _append(store, "2024-05-10T08:00:00.000000Z")   # within 7 days
    _append(store, "2024-05-02T08:00:00.000000Z")   # this month
    _append(store, "2024-04-20T08:00:00.000000Z")   # last month

    entries = ActivityLogger(store, clock=fixed_clock).query(LogFilters(date_range=date_range))
    assert len(entries) == expected


def test_query_user_filter_is_substring(db: Session):
    store = SqlLogStore(db)
    _append(store, "2024-05-01T00:00:00.000000Z", user="Alice")
    _append(store, "2024-05-02T00:00:00.000000Z", user="malice")
    _append(store, "2024-05-03T00:00:00.000000Z", user="bob")

    entries = ActivityLogger(store, clock=fixed_clock).query(LogFilters(user="ALI"))
    assert sorted(e.user for e in entries) == ["Alice", "malice"]


def test_limit_applies_before_filters(db: Session):
    store = SqlLogStore(db)
    _append(store, "2024-05-01T00:00:00.000000Z", kind="UPLOAD")
    _append(store, "2024-05-02T00:00:00.000000Z", kind="EDIT")
    _append(store, "2024-05-03T00:00:00.000000Z", kind="EDIT")

    activity = ActivityLogger(store, clock=fixed_clock)
    # The newest two entries are both EDITs, so the UPLOAD is never seen
    assert activity.query(LogFilters(type="UPLOAD", limit=2)) == []
    assert len(activity.query(LogFilters(type="UPLOAD", limit=3))) == 1


def test_pagination(db: Session):
    store = SqlLogStore(db)
    for day in range(1, 6):
        _append(store, f"2024-05-0{day}T00:00:00.000000Z", subject=f"ML-00{day}")

    activity = ActivityLogger(store, clock=fixed_clock)
    first = activity.query(LogFilters(page=1, page_size=2))
    third = activity.query(LogFilters(page=3, page_size=2))
    assert [e.subject for e in first] == ["ML-005", "ML-004"]
    assert [e.subject for e in third] == ["ML-001"]
    assert activity.query(LogFilters(page=4, page_size=2)) == []


def test_query_result_can_be_iterated_twice(db: Session):
    store = SqlLogStore(db)
    _append(store, "2024-05-01T00:00:00.000000Z")
    entries = ActivityLogger(store, clock=fixed_clock).query()
    assert list(entries) == list(entries)


def test_entries_are_immutable(db: Session):
    entry = _append(SqlLogStore(db), "2024-05-01T00:00:00.000000Z")
    with pytest.raises(Exception):
        entry.user = "mallory"


# ---------------------------------------------------------------------------
# subscribe
# ---------------------------------------------------------------------------

def test_subscribe_delivers_snapshot_then_updates(db: Session):
    store = SqlLogStore(db)
    _append(store, "2024-05-01T00:00:00.000000Z", kind="UPLOAD")
    activity = ActivityLogger(store, clock=fixed_clock)

    received = []
    unsubscribe = activity.subscribe(received.append, LogFilters(type="EDIT"))
    assert received == [[]]

    _append(store, "2024-05-02T00:00:00.000000Z", kind="EDIT")
    assert len(received) == 2
    assert [e.type for e in received[-1]] == ["EDIT"]

    unsubscribe()
    unsubscribe()
    _append(store, "2024-05-03T00:00:00.000000Z", kind="EDIT")
    assert len(received) == 2


def test_unsubscribe_does_not_affect_other_subscribers(db: Session):
    store = SqlLogStore(db)
    activity = ActivityLogger(store, clock=fixed_clock)

    first, second = [], []
    stop_first = activity.subscribe(first.append)
    activity.subscribe(second.append)
    stop_first()

    _append(store, "2024-05-02T00:00:00.000000Z")
    assert len(first) == 1
    assert len(second) == 2


def test_failing_subscriber_does_not_break_appends(db: Session):
    store = SqlLogStore(db)
    activity = ActivityLogger(store, clock=fixed_clock)

    def broken(entries):
        raise RuntimeError("listener bug")

    received = []
    activity.subscribe(broken)
    activity.subscribe(received.append)

    entry = activity.record(ActionKind.UPLOAD, "mod", "ML-001")
    assert entry is not None
    assert len(received[-1]) == 1


# ---------------------------------------------------------------------------
# describe / export
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "kind,target,data,expected",
    [
        (ActionKind.USER_EDIT, "b", {"old_username": "a", "new_username": "b"}, 'Username changed from "a" to "b"'),
        (ActionKind.PASSWORD_CHANGE, "a", {}, "Password updated"),
        (ActionKind.ROLE_CHANGE, "a", {"old_role": "moderator", "new_role": "administrator"},
         'Role changed from "moderator" to "administrator"'),
        (ActionKind.ADMIN_EDIT, "a", {"action": "status_change", "new_status": False},
         '"a" Account status changed to Inactive'),
        (ActionKind.ADMIN_EDIT, "a", {"action": "create"}, 'Created user account "a"'),
        (ActionKind.ADMIN_EDIT, "a", {"action": "delete"}, 'Deleted account "a"'),
        (ActionKind.EDIT, "a", {}, "User profile updated"),
    ],
)
def test_describe_user_activity(kind, target, data, expected):
    assert describe_user_activity(kind, target, **data) == expected


def test_export_csv(db: Session):
    activity = ActivityLogger(SqlLogStore(db), clock=fixed_clock)
    activity.record(ActionKind.UPLOAD, "mod", "ML-001", details="Uploaded character ML-001")
    activity.record(
        ActionKind.EDIT, "mod", "ML-001",
        changes=diff({"owner": "alice", "notes": ""}, {"owner": "carol", "notes": "hi"}),
    )

    lines = export_csv(activity.query()).strip().splitlines()
    assert lines[0] == "Timestamp,Type,User,Subject,Changes"
    assert lines[1].endswith(",EDIT,mod,ML-001,Owner: alice --> carol; Notes: (empty) --> hi")
    assert lines[2].endswith(",UPLOAD,mod,ML-001,Uploaded character ML-001")
