"""SiteFlag model: stored values of the global restriction switches"""
from sqlalchemy import Boolean, Column, DateTime, Integer, String

from masterlist.database import Base, utcnow

MAINTENANCE_MODE = "maintenance_mode"
FIRST_TIME_RESTRICTION = "first_time_restriction"

FLAG_NAMES = (MAINTENANCE_MODE, FIRST_TIME_RESTRICTION)


class SiteFlag(Base):
    """One row per flag. A missing row means the configured default applies."""

    __tablename__ = "site_flags"

    id = Column(Integer, primary_key=True)
    name = Column(String(50), unique=True, nullable=False, index=True)
    enabled = Column(Boolean, default=False, nullable=False)
    updated_by = Column(String(100), nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
