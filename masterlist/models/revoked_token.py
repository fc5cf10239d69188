"""RevokedToken model: jti blocklist for logged-out sessions"""
from sqlalchemy import Column, DateTime, Integer, String

from masterlist.database import Base, utcnow


class RevokedToken(Base):
    """Stores the jti of every session token ended through POST /auth/logout.

    decode_session_token() checks this table whenever a session is restored.
    expires_at mirrors the token's exp so rows can be pruned once it passes.
    """

    __tablename__ = "revoked_tokens"

    id = Column(Integer, primary_key=True, index=True)
    jti = Column(String(36), unique=True, nullable=False, index=True)
    revoked_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
