"""User model: dashboard accounts with a single role"""
from sqlalchemy import Boolean, Column, DateTime, Integer, String

from masterlist.database import Base, utcnow


class User(Base):
    """A moderator or administrator account.

    ``email`` is stored lowercase so lookups are case-insensitive.
    ``password_hash`` carries a scheme tag (``sha256:`` / ``base64:``); older
    rows may hold an untagged digest. ``role`` may hold the legacy ``admin``
    spelling in old rows; it is normalized when read.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    uid = Column(String(50), unique=True, nullable=False, index=True)          # "usr_xxx"
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    display_name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False)                                  # administrator|moderator
    password_hash = Column(String(255), nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_by = Column(String(50), nullable=True)                             # uid of creating admin, or "system"
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
