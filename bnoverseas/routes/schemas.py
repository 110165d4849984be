"""Response models shared by the auth, profile and admin routers."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from bnoverseas.models.user import UserRole


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ProfileResponse(CamelModel):
    bio: str | None = None
    date_of_birth: date | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    emergency_contact: str | None = None
    interested_countries: list[str] | None = None
    field_of_interest: str | None = None
    budget_range: str | None = None
    intake_preference: str | None = None
    avatar_url: str | None = None


class UserResponse(CamelModel):
    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    country: str | None = None
    study_level: str | None = None
    role: UserRole
    is_verified: bool
    profile: ProfileResponse | None = None


class SessionSummary(CamelModel):
    id: str
    device_info: str | None = None
    ip_address: str | None = None
    created_at: datetime
    expires_at: datetime


class AdminUserResponse(UserResponse):
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AdminUserDetailResponse(AdminUserResponse):
    sessions: list[SessionSummary] = []


class TokenResponse(CamelModel):
    user: UserResponse
    token: str
    refresh_token: str
    message: str


class MessageResponse(CamelModel):
    message: str
    success: bool = True
