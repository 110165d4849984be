from fastapi import Response

from bnoverseas.auth import jwt_handler
from bnoverseas.core import config


def _cookie_flags() -> dict:
    return {
        "path": "/",
        "samesite": config.AUTH_COOKIE_SAMESITE,
        "secure": config.AUTH_COOKIE_SECURE,
        "httponly": config.AUTH_COOKIE_HTTPONLY,
    }


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        config.AUTH_COOKIE_NAME,
        token,
        max_age=config.AUTH_COOKIE_MAX_AGE,
        **_cookie_flags(),
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(config.AUTH_COOKIE_NAME, **_cookie_flags())


def set_session_cookie(response: Response, token: str) -> None:
    flags = _cookie_flags()
    flags["httponly"] = True
    response.set_cookie(
        config.SESSION_COOKIE_NAME,
        token,
        max_age=int(jwt_handler.session_token_lifetime().total_seconds()),
        **flags,
    )


def clear_session_cookie(response: Response) -> None:
    flags = _cookie_flags()
    flags["httponly"] = True
    response.delete_cookie(config.SESSION_COOKIE_NAME, **flags)
