"""Character model"""
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from masterlist.database import Base, utcnow

# Columns that make up a character snapshot for diffing and responses
SNAPSHOT_FIELDS = (
    "masterlist_number",
    "owner",
    "artist",
    "primary_biome",
    "secondary_biome",
    "rarity",
    "status",
    "image_url",
    "description",
    "traits",
    "notes",
    "value",
)


class Character(Base):
    """Character model - one masterlist entry. Deletion is a soft delete."""

    __tablename__ = "characters"

    id = Column(Integer, primary_key=True, index=True)
    # Not unique at the DB level: a soft-deleted row keeps its number
    masterlist_number = Column(String(50), nullable=False, index=True)
    owner = Column(String(255), nullable=False)
    artist = Column(String(255), nullable=False)
    primary_biome = Column(String(100), nullable=True)
    secondary_biome = Column(String(100), nullable=True)
    rarity = Column(String(50), nullable=False, index=True)
    status = Column(String(50), nullable=False, index=True)
    image_url = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    traits = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    value = Column(String(100), nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    deleted_at = Column(DateTime, nullable=True)
    deleted_by = Column(String(100), nullable=True)
    created_by = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def snapshot(self) -> dict:
        """Plain dict of the editable fields"""
        return {field: getattr(self, field) for field in SNAPSHOT_FIELDS}
