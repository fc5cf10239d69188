"""Stored values of the global restriction flags"""
from typing import Dict, Optional

from sqlalchemy.orm import Session

from masterlist.config import settings
from masterlist.models.site_flag import FIRST_TIME_RESTRICTION, FLAG_NAMES, MAINTENANCE_MODE, SiteFlag
from masterlist.utils.access import RestrictionFlags
from masterlist.utils.logger import logger

# Spellings accepted in URLs, e.g. POST /access/flags/maintenance?state=on
FLAG_ALIASES = {
    "maintenance": MAINTENANCE_MODE,
    "maintenance-mode": MAINTENANCE_MODE,
    "maintenance_mode": MAINTENANCE_MODE,
    "first-time": FIRST_TIME_RESTRICTION,
    "first-time-restriction": FIRST_TIME_RESTRICTION,
    "first_time_restriction": FIRST_TIME_RESTRICTION,
}


def _defaults() -> Dict[str, bool]:
    return {
        MAINTENANCE_MODE: settings.MAINTENANCE_MODE,
        FIRST_TIME_RESTRICTION: settings.FIRST_TIME_RESTRICTION,
    }


def read_flags(db: Session) -> RestrictionFlags:
    """Current flag values; a flag never written falls back to its setting."""
    values = _defaults()
    for row in db.query(SiteFlag).filter(SiteFlag.name.in_(FLAG_NAMES)).all():
        values[row.name] = bool(row.enabled)
    return RestrictionFlags(
        maintenance_mode=values[MAINTENANCE_MODE],
        first_time_restriction=values[FIRST_TIME_RESTRICTION],
    )


def write_flags(db: Session, updates: Dict[str, Optional[bool]], actor: str) -> RestrictionFlags:
    """Store new values for the given flags. None values are skipped."""
    for name, enabled in updates.items():
        if enabled is None:
            continue
        if name not in FLAG_NAMES:
            raise ValueError(f"Unknown flag: {name}")
        row = db.query(SiteFlag).filter(SiteFlag.name == name).first()
        if row is None:
            row = SiteFlag(name=name)
            db.add(row)
        row.enabled = enabled
        row.updated_by = actor
        logger.info(f"Flag {name} set to {enabled}", extra={"user": actor, "action": "set_flag"})
    db.commit()
    return read_flags(db)
