"""Activity log model"""
import uuid

from sqlalchemy import Column, Integer, JSON, String, Text

from masterlist.database import Base


def generate_uuid_string():
    """Generate UUID as string for SQLite compatibility"""
    return str(uuid.uuid4())


class ActivityLog(Base):
    """ActivityLog model - append-only record of character and user mutations"""

    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    log_id = Column(String(36), default=generate_uuid_string, unique=True, nullable=False, index=True)
    # Fixed-width ISO-8601 UTC string, so lexical order is chronological order
    timestamp = Column(String(32), nullable=False, index=True)
    type = Column(String(32), nullable=False, index=True)
    user = Column(String(100), nullable=False, index=True)
    subject = Column(String(255), nullable=True)
    category = Column(String(20), nullable=False)  # CHARACTER, USER
    details = Column(Text, nullable=True)
    changes = Column(JSON, nullable=True)
    log_metadata = Column("metadata", JSON, nullable=True)  # Column name is 'metadata', attribute is 'log_metadata'
