"""Access evaluator for the dashboard's guarded pages and endpoints.

Every guarded entry point funnels through :func:`evaluate`, a pure function
over explicit inputs. Restrictions are checked in strict order and the first
match wins:

  1. maintenance mode          -> landing page
  2. first-time restriction    -> landing page
  3. no session                -> login page
  4. role does not satisfy     -> the caller's own home page
  5. otherwise                 -> allowed

Role satisfaction:
  administrator  satisfies "any" and "administrator" (never exactly "moderator")
  moderator      satisfies "any" and "moderator"

Malformed input (an unrecognized role or required-role string, or a session
without a role) is treated as "no session".
"""
from enum import Enum
from typing import NamedTuple, Optional, Union

from masterlist.config import settings


class Role(str, Enum):
    ADMINISTRATOR = "administrator"
    MODERATOR = "moderator"


class RequiredRole(str, Enum):
    ADMINISTRATOR = "administrator"
    MODERATOR = "moderator"
    ANY = "any"


class ReasonCode(str, Enum):
    MAINTENANCE_MODE = "MAINTENANCE_MODE"
    FIRST_TIME_RESTRICTION = "FIRST_TIME_RESTRICTION"
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    INSUFFICIENT_PRIVILEGE = "INSUFFICIENT_PRIVILEGE"
    ACCESS_GRANTED = "ACCESS_GRANTED"


# Legacy spellings found in older user records and sessions
_ROLE_ALIASES = {
    "admin": Role.ADMINISTRATOR,
}

# Dashboard pages and the role each one requires
PAGE_REQUIREMENTS = {
    "dashboard": RequiredRole.ANY,
    "database": RequiredRole.ANY,
    "upload": RequiredRole.ANY,
    "logging": RequiredRole.ANY,
    "profile-settings": RequiredRole.ANY,
    "user-management": RequiredRole.ADMINISTRATOR,
}

_TOGGLE_ON = {"enable", "enabled", "on", "true"}
_TOGGLE_OFF = {"disable", "disabled", "off", "false"}


class RestrictionFlags(NamedTuple):
    """The two global switches, read by the caller and passed in explicitly."""
    maintenance_mode: bool = False
    first_time_restriction: bool = False


class AccessRequest(NamedTuple):
    has_session: bool
    role: Optional[Union[Role, str]]
    maintenance_mode_active: bool = False
    first_time_restriction_active: bool = False
    required_role: Union[RequiredRole, str] = RequiredRole.ANY

    @classmethod
    def build(
        cls,
        has_session: bool,
        role: Optional[Union[Role, str]],
        flags: RestrictionFlags,
        required_role: Union[RequiredRole, str] = RequiredRole.ANY,
    ) -> "AccessRequest":
        return cls(
            has_session=has_session,
            role=role,
            maintenance_mode_active=flags.maintenance_mode,
            first_time_restriction_active=flags.first_time_restriction,
            required_role=required_role,
        )


class Decision(NamedTuple):
    allowed: bool
    redirect_target: Optional[str]
    reason_code: ReasonCode


def normalize_role(value: Optional[Union[Role, str]]) -> Optional[Role]:
    """Map a stored or submitted role string to a Role, or None if unrecognized."""
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    key = str(value).strip().lower()
    if key in _ROLE_ALIASES:
        return _ROLE_ALIASES[key]
    try:
        return Role(key)
    except ValueError:
        return None


def normalize_required_role(value: Union[RequiredRole, str, None]) -> Optional[RequiredRole]:
    if value is None:
        return RequiredRole.ANY
    if isinstance(value, RequiredRole):
        return value
    key = str(value).strip().lower()
    if key in _ROLE_ALIASES:
        return RequiredRole(_ROLE_ALIASES[key].value)
    try:
        return RequiredRole(key)
    except ValueError:
        return None


def role_satisfies(role: Role, required: RequiredRole) -> bool:
    if required == RequiredRole.ANY:
        return True
    return role.value == required.value


def home_page_for(role: Role) -> str:
    """Page an authenticated user is sent to when a page is above or beside their role."""
    if role == Role.ADMINISTRATOR:
        return settings.ADMINISTRATOR_HOME_PAGE
    return settings.MODERATOR_HOME_PAGE


def evaluate(request: AccessRequest) -> Decision:
    """Decide whether a guarded resource may be shown, and if not, where to go."""
    if request.maintenance_mode_active:
        return Decision(False, settings.LANDING_PAGE, ReasonCode.MAINTENANCE_MODE)

    if request.first_time_restriction_active:
        return Decision(False, settings.LANDING_PAGE, ReasonCode.FIRST_TIME_RESTRICTION)

    role = normalize_role(request.role)
    required = normalize_required_role(request.required_role)

    if not request.has_session or role is None or required is None:
        return Decision(False, settings.LOGIN_PAGE, ReasonCode.AUTHENTICATION_REQUIRED)

    if not role_satisfies(role, required):
        return Decision(False, home_page_for(role), ReasonCode.INSUFFICIENT_PRIVILEGE)

    return Decision(True, None, ReasonCode.ACCESS_GRANTED)


def parse_toggle(value: Union[str, bool, None]) -> Optional[bool]:
    """Interpret an on/off word ("enable", "off", "true", ...). Returns None if unrecognized."""
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    key = str(value).strip().lower()
    if key in _TOGGLE_ON:
        return True
    if key in _TOGGLE_OFF:
        return False
    return None
