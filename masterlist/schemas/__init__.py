"""Pydantic schemas for request/response validation"""
from masterlist.schemas.access import DecisionResponse, FlagsResponse, FlagsUpdate
from masterlist.schemas.activity_log import ActivityEntry, ActivityLogPage, FieldChange, LogFilters
from masterlist.schemas.auth import LoginRequest, SessionResponse, TokenResponse
from masterlist.schemas.character import (
    CharacterCreate,
    CharacterListResponse,
    CharacterResponse,
    CharacterUpdate,
    NextNumberResponse,
)
from masterlist.schemas.user import (
    PasswordChange,
    ProfileUpdate,
    UserCreate,
    UserResponse,
    UserStats,
    UserUpdate,
)

__all__ = [
    "DecisionResponse",
    "FlagsResponse",
    "FlagsUpdate",
    "ActivityEntry",
    "ActivityLogPage",
    "FieldChange",
    "LogFilters",
    "LoginRequest",
    "SessionResponse",
    "TokenResponse",
    "CharacterCreate",
    "CharacterListResponse",
    "CharacterResponse",
    "CharacterUpdate",
    "NextNumberResponse",
    "PasswordChange",
    "ProfileUpdate",
    "UserCreate",
    "UserResponse",
    "UserStats",
    "UserUpdate",
]
