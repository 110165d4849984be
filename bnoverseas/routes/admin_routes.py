from typing import Literal

from fastapi import APIRouter, Depends, Query
from pydantic import EmailStr, Field
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from bnoverseas.auth.credentials import normalize_email
from bnoverseas.auth.dependencies import require_roles
from bnoverseas.auth.policies import ADMIN_ROLES, can_assign_role
from bnoverseas.core.errors import Conflict, InsufficientPermissions, NotFound
from bnoverseas.database import commit, get_db
from bnoverseas.models.user import User, UserRole
from bnoverseas.models.user_session import UserSession
from bnoverseas.routes.profile_routes import ProfileUpdate, apply_profile_fields
from bnoverseas.routes.schemas import AdminUserDetailResponse, AdminUserResponse, CamelModel, SessionSummary

router = APIRouter(tags=['admin-users'])

RECENT_SESSION_LIMIT = 5
MAX_PAGE_SIZE = 100

SORT_COLUMNS = {
    'name': User.first_name,
    'email': User.email,
    'role': User.role,
    'created': User.created_at,
    'lastLogin': User.last_login,
}


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class RoleCount(CamelModel):
    role: UserRole
    count: int


class UserListResponse(CamelModel):
    users: list[AdminUserResponse]
    pagination: Pagination
    role_counts: list[RoleCount]
    roles: list[UserRole]


class UserDetailEnvelope(CamelModel):
    user: AdminUserDetailResponse


class AdminUpdateUserRequest(CamelModel):
    first_name: str | None = Field(default=None, min_length=1)
    last_name: str | None = Field(default=None, min_length=1)
    email: EmailStr | None = None
    phone: str | None = None
    country: str | None = None
    study_level: str | None = None
    role: UserRole | None = None
    is_verified: bool | None = None
    profile: ProfileUpdate | None = None


def _like_pattern(search: str) -> str:
    escaped = search.strip().lower().replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
    return f'%{escaped}%'


def _get_user_or_404(db: Session, user_id: str) -> User:
    user = (
        db.query(User)
        .options(joinedload(User.profile))
        .filter(User.id == user_id)
        .first()
    )
    if user is None:
        raise NotFound('User not found')
    return user


def _detail(db: Session, user: User) -> UserDetailEnvelope:
    sessions = (
        db.query(UserSession)
        .filter(UserSession.user_id == user.id)
        .order_by(UserSession.created_at.desc())
        .limit(RECENT_SESSION_LIMIT)
        .all()
    )
    detail = AdminUserDetailResponse(
        **AdminUserResponse.model_validate(user).model_dump(),
        sessions=[SessionSummary.model_validate(row) for row in sessions],
    )
    return UserDetailEnvelope(user=detail)


@router.get('/users', response_model=UserListResponse)
def list_users(
    search: str | None = Query(None),
    role: UserRole | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE),
    sort_by: Literal['name', 'email', 'role', 'created', 'lastLogin'] = Query('created', alias='sortBy'),
    sort_order: Literal['asc', 'desc'] = Query('desc', alias='sortOrder'),
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    query = db.query(User).options(joinedload(User.profile))

    if search:
        pattern = _like_pattern(search)
        query = query.filter(
            or_(
                func.lower(User.first_name).like(pattern, escape='\\'),
                func.lower(User.last_name).like(pattern, escape='\\'),
                func.lower(User.email).like(pattern, escape='\\'),
                func.lower(User.phone).like(pattern, escape='\\'),
            )
        )

    if role is not None:
        query = query.filter(User.role == role)

    total = query.count()
    column = SORT_COLUMNS[sort_by]
    ordering = column.asc() if sort_order == 'asc' else column.desc()
    users = query.order_by(ordering).offset((page - 1) * limit).limit(limit).all()

    counts = db.query(User.role, func.count(User.id)).group_by(User.role).all()

    return UserListResponse(
        users=[AdminUserResponse.model_validate(user) for user in users],
        pagination=Pagination(page=page, limit=limit, total=total, pages=(total + limit - 1) // limit),
        role_counts=[RoleCount(role=role_value, count=count) for role_value, count in counts],
        roles=list(UserRole),
    )


@router.get('/users/{user_id}', response_model=UserDetailEnvelope)
def get_user(
    user_id: str,
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    return _detail(db, _get_user_or_404(db, user_id))


@router.put('/users/{user_id}', response_model=UserDetailEnvelope)
def update_user(
    user_id: str,
    data: AdminUpdateUserRequest,
    current_user: User = Depends(require_roles(*ADMIN_ROLES)),
    db: Session = Depends(get_db),
):
    user = _get_user_or_404(db, user_id)

    # Accounts holding a role the actor could not grant are read-only to them.
    if current_user.id != user.id and not can_assign_role(current_user.role, user.role):
        raise InsufficientPermissions('Only super admin can modify admin accounts')

    if data.role is not None and data.role != user.role and not (
        can_assign_role(current_user.role, data.role) and can_assign_role(current_user.role, user.role)
    ):
        raise InsufficientPermissions('Only super admin can assign admin roles')

    if data.email is not None:
        email = normalize_email(data.email)
        if email != user.email:
            taken = db.query(User).filter(User.email == email, User.id != user.id).first()
            if taken is not None:
                raise Conflict('Email is already in use by another user')
            user.email = email

    for field_name in ('first_name', 'last_name', 'phone', 'country', 'study_level', 'role', 'is_verified'):
        value = getattr(data, field_name)
        if value is not None:
            setattr(user, field_name, value)

    apply_profile_fields(user, data.profile)

    try:
        commit(db)
    except IntegrityError as exc:
        raise Conflict('Email is already in use by another user') from exc
    return _detail(db, _get_user_or_404(db, user_id))
