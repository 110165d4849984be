"""Ordered chain of strategies that turn an inbound request into a user.

Each resolver looks for one kind of credential. The chain is walked in order
and stops at the first resolver that yields a user. A missing, forged or
expired token and an unknown subject all look the same to callers: ``None``.
"""

import logging
from datetime import datetime

import jwt
from sqlalchemy.orm import Session, joinedload

from bnoverseas.auth import jwt_handler
from bnoverseas.core import config
from bnoverseas.models.user import User

logger = logging.getLogger(__name__)


def load_user(db: Session, user_id: str) -> User | None:
    return (
        db.query(User)
        .options(joinedload(User.profile))
        .filter(User.id == user_id)
        .first()
    )


def extract_bearer_token(request) -> str | None:
    """Token from ``Authorization: Bearer`` or, failing that, the auth cookie."""
    header = request.headers.get("authorization") or ""
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(config.AUTH_COOKIE_NAME) or None


class TokenResolver:
    name = "token"

    def extract(self, request) -> str | None:
        raise NotImplementedError

    def decode(self, token: str, now: datetime | None = None) -> dict:
        raise NotImplementedError

    def claims(self, request, now: datetime | None = None) -> dict | None:
        token = self.extract(request)
        if not token:
            return None
        try:
            return self.decode(token, now)
        except jwt.ExpiredSignatureError:
            logger.debug("%s token expired", self.name)
        except jwt.InvalidTokenError as exc:
            logger.debug("%s token rejected: %s", self.name, exc)
        return None

    def resolve(self, request, db: Session, now: datetime | None = None) -> User | None:
        payload = self.claims(request, now)
        if payload is None:
            return None
        user = load_user(db, payload["sub"])
        if user is None:
            logger.debug("%s token subject %s no longer resolves", self.name, payload["sub"])
        return user


class SessionCookieResolver(TokenResolver):
    name = "session"

    def extract(self, request) -> str | None:
        return request.cookies.get(config.SESSION_COOKIE_NAME) or None

    def decode(self, token: str, now: datetime | None = None) -> dict:
        return jwt_handler.decode_session_token(token, now)


class BearerTokenResolver(TokenResolver):
    name = "bearer"

    def extract(self, request) -> str | None:
        return extract_bearer_token(request)

    def decode(self, token: str, now: datetime | None = None) -> dict:
        return jwt_handler.decode_access_token(token, now)


DEFAULT_RESOLVERS = (SessionCookieResolver(), BearerTokenResolver())


def resolve_user(
    request,
    db: Session,
    resolvers=DEFAULT_RESOLVERS,
    now: datetime | None = None,
) -> User | None:
    for resolver in resolvers:
        user = resolver.resolve(request, db, now)
        if user is not None:
            return user
    return None
