# backend/plotbook/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator


class _CamelIn(BaseModel):
    # Clients send camelCase; handlers read snake_case.
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# -------------------- Auth --------------------

class SignupIn(_CamelIn):
    email: str
    password: str
    name: Optional[str] = None
    company_name: Optional[str] = Field(default=None, alias="companyName")
    token: Optional[str] = None


class LoginIn(_CamelIn):
    email: str
    password: str


class CheckUserIn(_CamelIn):
    email: str


class MeOut(BaseModel):
    id: int
    email: str
    name: str
    role: str
    companyId: Optional[int] = None
    canAccessDashboard: bool
    canAccessSavedProperties: bool
    canAccessTeamManagement: bool


# -------------------- Invitations --------------------

class InvitationCreate(_CamelIn):
    email: str

    @field_validator("email")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip().lower()


class TokenIn(_CamelIn):
    token: str = Field(min_length=1)


class InvitationValidOut(BaseModel):
    email: str
    expires: datetime


# -------------------- Saved properties --------------------

class SaveIn(_CamelIn):
    property_id: int = Field(alias="propertyId")
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, v: List[str]) -> List[str]:
        out: List[str] = []
        for t in v:
            t = t.strip()
            if t and t not in out:
                out.append(t)
        return out


# -------------------- Team / user --------------------

class PermissionsPatch(_CamelIn):
    can_access_dashboard: Optional[StrictBool] = Field(default=None, alias="canAccessDashboard")
    can_access_saved_properties: Optional[StrictBool] = Field(default=None, alias="canAccessSavedProperties")
    can_access_team_management: Optional[StrictBool] = Field(default=None, alias="canAccessTeamManagement")


class CheckPermissionIn(_CamelIn):
    permission: str


class TeamStatsOut(BaseModel):
    totalMembers: int
    activeMembers: int
    pendingInvitations: int
    totalRoles: int
