import secrets

import bcrypt

from bnoverseas.core import config


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash, e.g. an account provisioned without a password.
        return False


def generate_secure_token() -> str:
    return secrets.token_hex(32)


def generate_otp() -> str:
    return f"{secrets.randbelow(900000) + 100000}"
