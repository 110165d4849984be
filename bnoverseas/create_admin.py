"""Create a verified administrator account.

Usage:
    python -m bnoverseas.create_admin EMAIL PASSWORD [--role SUPER_ADMIN]
"""
import argparse
import sys

from bnoverseas.auth.credentials import find_user_by_email, normalize_email
from bnoverseas.auth.passwords import hash_password
from bnoverseas.core.utils import utc_now
from bnoverseas.database import Base, SessionLocal, commit, engine
from bnoverseas.models.user import User, UserRole
from bnoverseas.models.user_profile import UserProfile

ADMIN_CHOICES = [UserRole.ADMIN.value, UserRole.SUPER_ADMIN.value]


def create_admin(db, email: str, password: str, role: str = UserRole.ADMIN.value) -> tuple[User, bool]:
    existing = find_user_by_email(db, email)
    if existing is not None:
        return existing, False

    user = User(
        email=normalize_email(email),
        password_hash=hash_password(password),
        first_name='Site',
        last_name='Administrator',
        role=UserRole(role),
        is_verified=True,
        email_verified_at=utc_now(),
    )
    user.profile = UserProfile(interested_countries=[])
    db.add(user)
    commit(db)
    db.refresh(user)
    return user, True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Create an administrator account.')
    parser.add_argument('email', help='Login email')
    parser.add_argument('password', help='Initial password')
    parser.add_argument('--role', choices=ADMIN_CHOICES, default=UserRole.ADMIN.value, help='Administrative role')
    args = parser.parse_args(argv)

    if len(args.password) < 8:
        print('Password must be at least 8 characters.', file=sys.stderr)
        return 1

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user, created = create_admin(db, args.email, args.password, args.role)
    finally:
        db.close()

    if created:
        print(f'Created {args.role} account for {args.email}.')
    else:
        print(f'User {args.email} already exists with role {user.role.value}.')
    return 0


if __name__ == '__main__':
    sys.exit(main())
