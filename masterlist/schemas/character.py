"""Character schemas"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class CharacterFields(BaseModel):
    """Editable character fields. Every field is optional here; required
    fields are checked by the characters API so that missing values come
    back as one list of readable errors."""

    masterlist_number: Optional[str] = Field(None, max_length=50, description="e.g. ML-007")
    owner: Optional[str] = Field(None, max_length=255)
    artist: Optional[str] = Field(None, max_length=255)
    primary_biome: Optional[str] = Field(None, max_length=100)
    secondary_biome: Optional[str] = Field(None, max_length=100)
    rarity: Optional[str] = Field(None, max_length=50)
    status: Optional[str] = Field(None, max_length=50)
    image_url: Optional[str] = Field(None, description="Stored verbatim")
    description: Optional[str] = None
    traits: Optional[str] = None
    notes: Optional[str] = None
    value: Optional[str] = Field(None, max_length=100)


class CharacterCreate(CharacterFields):
    pass


class CharacterUpdate(CharacterFields):
    pass


class CharacterResponse(BaseModel):
    masterlist_number: str
    owner: str
    artist: str
    primary_biome: Optional[str] = None
    secondary_biome: Optional[str] = None
    rarity: str
    status: str
    image_url: Optional[str] = None
    description: Optional[str] = None
    traits: Optional[str] = None
    notes: Optional[str] = None
    value: Optional[str] = None
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CharacterListResponse(BaseModel):
    total: int
    characters: List[CharacterResponse]


class NextNumberResponse(BaseModel):
    masterlist_number: str
