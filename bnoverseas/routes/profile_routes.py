from datetime import date

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.orm import Session

from bnoverseas.auth.dependencies import get_current_user
from bnoverseas.auth.resolvers import load_user
from bnoverseas.core.errors import NotFound
from bnoverseas.database import commit, get_db
from bnoverseas.models.user import User
from bnoverseas.models.user_profile import UserProfile
from bnoverseas.routes.schemas import CamelModel, UserResponse

router = APIRouter(tags=['profile'])

USER_FIELDS = ('first_name', 'last_name', 'phone', 'country', 'study_level')
PROFILE_FIELDS = (
    'bio',
    'date_of_birth',
    'address',
    'city',
    'state',
    'zip_code',
    'emergency_contact',
    'interested_countries',
    'field_of_interest',
    'budget_range',
    'intake_preference',
)


class ProfileUpdate(CamelModel):
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


class UpdateProfileRequest(CamelModel):
    first_name: str | None = Field(default=None, min_length=2)
    last_name: str | None = Field(default=None, min_length=2)
    phone: str | None = None
    country: str | None = None
    study_level: str | None = None
    profile: ProfileUpdate | None = None


class ProfileEnvelope(CamelModel):
    user: UserResponse
    message: str | None = None


def apply_profile_update(user: User, data: UpdateProfileRequest) -> None:
    """Copy the fields present in ``data`` onto the user and its profile."""
    for field_name in USER_FIELDS:
        value = getattr(data, field_name)
        if value:
            setattr(user, field_name, value)

    apply_profile_fields(user, data.profile)


def apply_profile_fields(user: User, profile: ProfileUpdate | None) -> None:
    if profile is None:
        return

    changes = profile.model_dump(exclude_unset=True)
    changes = {key: value for key, value in changes.items() if key in PROFILE_FIELDS}
    if not changes:
        return

    if user.profile is None:
        user.profile = UserProfile()
    for field_name, value in changes.items():
        setattr(user.profile, field_name, value)


@router.get('/profile', response_model=ProfileEnvelope)
def get_profile(current_user: User = Depends(get_current_user)):
    return ProfileEnvelope(user=UserResponse.model_validate(current_user))


@router.put('/profile', response_model=ProfileEnvelope)
def update_profile(
    data: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    apply_profile_update(current_user, data)
    commit(db)

    updated = load_user(db, current_user.id)
    if updated is None:
        raise NotFound('User not found')

    return ProfileEnvelope(
        user=UserResponse.model_validate(updated),
        message='Profile updated successfully',
    )
