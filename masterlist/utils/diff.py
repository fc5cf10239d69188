"""Field-level diffs between two character snapshots.

Only the fields in TRACKABLE_FIELDS are compared, always in that order.
Missing and None values compare as "" so that empty-to-empty never shows up
as an edit.
"""
from typing import Any, Dict, List, Mapping, NamedTuple, Optional

EMPTY_SENTINEL = "(empty)"

TRACKABLE_FIELDS = (
    ("owner", "Owner"),
    ("artist", "Artist"),
    ("primary_biome", "Primary Biome"),
    ("secondary_biome", "Secondary Biome"),
    ("rarity", "Rarity"),
    ("status", "Status"),
    ("description", "Description"),
    ("traits", "Traits"),
    ("notes", "Notes"),
    ("value", "Value"),
    ("masterlist_number", "Masterlist Number"),
)

DISPLAY_NAMES = dict(TRACKABLE_FIELDS)


class FieldDiff(NamedTuple):
    field: str
    display_name: str
    from_value: str
    to_value: str

    def as_dict(self) -> Dict[str, str]:
        """Serialized form stored in an activity entry's ``changes`` list."""
        return {
            "field": self.field,
            "display_name": self.display_name,
            "from": self.from_value or EMPTY_SENTINEL,
            "to": self.to_value or EMPTY_SENTINEL,
        }


def _normalize(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def diff(prior: Optional[Mapping[str, Any]], proposed: Optional[Mapping[str, Any]]) -> List[FieldDiff]:
    """Return the tracked fields whose normalized values differ."""
    prior = prior or {}
    proposed = proposed or {}

    changes = []
    for field, display_name in TRACKABLE_FIELDS:
        before = _normalize(prior.get(field))
        after = _normalize(proposed.get(field))
        if before != after:
            changes.append(FieldDiff(field, display_name, before, after))
    return changes


def format_change(change: Mapping[str, Any]) -> str:
    """Render one stored change as ``Display Name: from --> to``."""
    name = change.get("display_name") or change.get("field") or "Field"
    before = change.get("from") or EMPTY_SENTINEL
    after = change.get("to") or EMPTY_SENTINEL
    return f"{name}: {before} --> {after}"
