from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt

from bnoverseas.core import config

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"
SESSION_TOKEN = "session"

_SECRETS = {
    ACCESS_TOKEN: "JWT_SECRET",
    REFRESH_TOKEN: "JWT_REFRESH_SECRET",
    SESSION_TOKEN: "SESSION_SECRET",
}


def access_token_lifetime() -> timedelta:
    return timedelta(hours=config.ACCESS_TOKEN_EXPIRES_HOURS)


def refresh_token_lifetime() -> timedelta:
    return timedelta(days=config.REFRESH_TOKEN_EXPIRES_DAYS)


def session_token_lifetime() -> timedelta:
    return timedelta(days=config.SESSION_MAX_AGE_DAYS)


def claims_for(user) -> dict:
    """Build the {userId, email, role} claim set carried by every token family."""
    return {"userId": user.id, "email": user.email, "role": user.role}


def _role_value(role) -> str:
    return getattr(role, "value", role)


def _encode(claims: dict, token_type: str, lifetime: timedelta, now: datetime | None = None) -> str:
    secret = config.require_secret(_SECRETS[token_type])
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(claims["userId"]),
        "userId": str(claims["userId"]),
        "email": claims["email"],
        "role": _role_value(claims["role"]),
        "type": token_type,
        "iss": config.JWT_ISSUER,
        "aud": config.JWT_AUDIENCE,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "jti": uuid4().hex,
    }
    if claims.get("name"):
        payload["name"] = claims["name"]
    return jwt.encode(payload, secret, algorithm=config.JWT_ALGORITHM)


def _decode(token: str, token_type: str, now: datetime | None = None) -> dict:
    secret = config.require_secret(_SECRETS[token_type])
    payload = jwt.decode(
        token,
        secret,
        algorithms=[config.JWT_ALGORITHM],
        audience=config.JWT_AUDIENCE,
        issuer=config.JWT_ISSUER,
        options={"require": ["exp", "iat", "sub"], "verify_exp": False},
    )
    # A token is already expired at its exp instant.
    current = (now or datetime.now(timezone.utc)).timestamp()
    if payload["exp"] <= current:
        raise jwt.ExpiredSignatureError("Signature has expired")
    if payload.get("type") != token_type:
        raise jwt.InvalidTokenError(f"Expected {token_type} token, got {payload.get('type')}")
    return payload


def issue_access_token(claims: dict, now: datetime | None = None) -> str:
    return _encode(claims, ACCESS_TOKEN, access_token_lifetime(), now)


def issue_refresh_token(claims: dict, now: datetime | None = None) -> str:
    return _encode(claims, REFRESH_TOKEN, refresh_token_lifetime(), now)


def issue_session_token(claims: dict, now: datetime | None = None) -> str:
    return _encode(claims, SESSION_TOKEN, session_token_lifetime(), now)


def issue_token_pair(claims: dict) -> tuple[str, str]:
    return issue_access_token(claims), issue_refresh_token(claims)


def decode_access_token(token: str, now: datetime | None = None) -> dict:
    return _decode(token, ACCESS_TOKEN, now)


def decode_refresh_token(token: str, now: datetime | None = None) -> dict:
    return _decode(token, REFRESH_TOKEN, now)


def decode_session_token(token: str, now: datetime | None = None) -> dict:
    return _decode(token, SESSION_TOKEN, now)
