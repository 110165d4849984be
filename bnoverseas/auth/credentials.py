from sqlalchemy.orm import Session, joinedload

from bnoverseas.auth.passwords import verify_password
from bnoverseas.core.errors import InvalidCredentials, VerificationRequired
from bnoverseas.models.user import User


def normalize_email(email: str) -> str:
    return email.strip().lower()


def find_user_by_email(db: Session, email: str) -> User | None:
    return (
        db.query(User)
        .options(joinedload(User.profile))
        .filter(User.email == normalize_email(email))
        .first()
    )


def authenticate_credentials(db: Session, email: str, password: str) -> User:
    """Check an email/password pair for either login path.

    Unknown email and wrong password raise the same error. A correct password
    for an unverified account that is not an admin raises VerificationRequired.
    """
    user = find_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        raise InvalidCredentials()

    if not user.is_verified and not user.is_admin:
        raise VerificationRequired()

    return user
