"""Database models"""
from masterlist.models.activity_log import ActivityLog
from masterlist.models.character import Character
from masterlist.models.revoked_token import RevokedToken
from masterlist.models.site_flag import SiteFlag
from masterlist.models.user import User

__all__ = ["ActivityLog", "Character", "RevokedToken", "SiteFlag", "User"]
