from datetime import datetime

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from bnoverseas.auth.policies import as_role
from bnoverseas.auth.resolvers import resolve_user
from bnoverseas.core.errors import AuthenticationRequired, InsufficientPermissions
from bnoverseas.database import get_db
from bnoverseas.models.user import User


def require_auth(
    request,
    db: Session,
    allowed_roles=None,
    now: datetime | None = None,
) -> User:
    """Resolve the caller and check role membership.

    Raises AuthenticationRequired when no credential resolves to a user and
    InsufficientPermissions when ``allowed_roles`` is given and the user's
    role is not in it. Has no side effects beyond the user lookup.
    """
    user = resolve_user(request, db, now=now)
    if user is None:
        raise AuthenticationRequired()
    if allowed_roles is not None and as_role(user.role) not in allowed_roles:
        raise InsufficientPermissions()
    return user


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    return require_auth(request, db)


def require_roles(*roles):
    allowed = frozenset(roles)

    def dependency(request: Request, db: Session = Depends(get_db)) -> User:
        return require_auth(request, db, allowed)

    return dependency
