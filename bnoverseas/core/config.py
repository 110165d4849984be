import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


class ConfigurationError(RuntimeError):
    """Raised when a required setting is missing or unsafe."""


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./bnoverseas.db")

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), ["http://localhost:3000"])
APP_URL = os.getenv("APP_URL", "http://localhost:3000")
LOGIN_PAGE_PATH = os.getenv("LOGIN_PAGE_PATH", "/login")

# Custom JWT pair
JWT_SECRET = os.getenv("JWT_SECRET", "")
JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "")
JWT_ISSUER = os.getenv("JWT_ISSUER", "bnoverseas")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "bnoverseas-users")
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRES_HOURS = int(os.getenv("ACCESS_TOKEN_EXPIRES_HOURS", "24"))
REFRESH_TOKEN_EXPIRES_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRES_DAYS", "7"))

# Framework-managed session token
SESSION_SECRET = os.getenv("SESSION_SECRET", "")
SESSION_MAX_AGE_DAYS = int(os.getenv("SESSION_MAX_AGE_DAYS", "7"))
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session-token")

AUTH_COOKIE_NAME = os.getenv("AUTH_COOKIE_NAME", "auth-token")
AUTH_COOKIE_MAX_AGE = int(os.getenv("AUTH_COOKIE_MAX_AGE", str(7 * 24 * 60 * 60)))
AUTH_COOKIE_HTTPONLY = _get_bool(os.getenv("AUTH_COOKIE_HTTPONLY"), default=True)
AUTH_COOKIE_SECURE = _get_bool(os.getenv("AUTH_COOKIE_SECURE"), default=APP_ENV.lower() == "production")
AUTH_COOKIE_SAMESITE = "lax"

MIN_SECRET_LENGTH = 32

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))
OTP_EXPIRES_MINUTES = int(os.getenv("OTP_EXPIRES_MINUTES", "10"))
RESET_TOKEN_EXPIRES_MINUTES = int(os.getenv("RESET_TOKEN_EXPIRES_MINUTES", "60"))

SMTP_HOST = os.getenv("SMTP_HOST", "")
SMTP_PORT = int(os.getenv("SMTP_PORT", "465"))
SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
SMTP_FROM = os.getenv("SMTP_FROM", "")
EMAIL_NOTIFICATIONS_ENABLED = _get_bool(os.getenv("EMAIL_NOTIFICATIONS_ENABLED"), default=False)


def require_secret(name: str) -> str:
    """Return the named secret, refusing missing or short values."""
    value = globals().get(name) or ""
    if len(value) < MIN_SECRET_LENGTH:
        raise ConfigurationError(f"{name} must be at least {MIN_SECRET_LENGTH} characters long")
    return value


def email_configured() -> bool:
    return bool(SMTP_HOST and SMTP_USERNAME and SMTP_PASSWORD and EMAIL_NOTIFICATIONS_ENABLED)


def validate_runtime_config() -> None:
    for name in ("JWT_SECRET", "JWT_REFRESH_SECRET", "SESSION_SECRET"):
        require_secret(name)
