"""Access decision and restriction flag schemas"""
from typing import Optional

from pydantic import BaseModel


class DecisionResponse(BaseModel):
    allowed: bool
    redirect_target: Optional[str] = None
    reason_code: str
    required_role: Optional[str] = None
    page: Optional[str] = None


class FlagsResponse(BaseModel):
    maintenance_mode: bool
    first_time_restriction: bool


class FlagsUpdate(BaseModel):
    """Partial flag update; omitted flags keep their value"""

    maintenance_mode: Optional[bool] = None
    first_time_restriction: Optional[bool] = None
