"""Best-effort login bookkeeping.

These helpers run as background tasks after the login response is sent. A
failure here is logged and dropped: the issued token stays valid whether or
not its session row or last-login stamp was written.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from bnoverseas.auth import jwt_handler
from bnoverseas.core.utils import utc_now
from bnoverseas.database import commit
from bnoverseas.models.user import User
from bnoverseas.models.user_session import UserSession

logger = logging.getLogger(__name__)


def client_ip(request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    client = getattr(request, "client", None)
    return client.host if client else ""


def record_session(
    session_factory: sessionmaker,
    user_id: str,
    token: str,
    device_info: str = "",
    ip_address: str = "",
) -> None:
    db = session_factory()
    try:
        db.add(
            UserSession(
                user_id=user_id,
                token=token,
                expires_at=utc_now() + jwt_handler.access_token_lifetime(),
                device_info=(device_info or "")[:500],
                ip_address=ip_address or "",
            )
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Could not record session row for user %s", user_id, exc_info=True)
    finally:
        db.close()


def touch_last_login(session_factory: sessionmaker, user_id: str) -> None:
    db = session_factory()
    try:
        db.query(User).filter(User.id == user_id).update(
            {User.last_login: utc_now()},
            synchronize_session=False,
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Could not update last login for user %s", user_id, exc_info=True)
    finally:
        db.close()


def revoke_session(db: Session, user_id: str, token: str) -> int:
    deleted = (
        db.query(UserSession)
        .filter(UserSession.user_id == user_id, UserSession.token == token)
        .delete(synchronize_session=False)
    )
    commit(db)
    return deleted
