import os

os.environ.setdefault('DATABASE_URL', 'sqlite:///:memory:')
os.environ.setdefault('JWT_SECRET', 'test-access-secret-0123456789-abcdefghijkl')
os.environ.setdefault('JWT_REFRESH_SECRET', 'test-refresh-secret-0123456789-abcdefghijk')
os.environ.setdefault('SESSION_SECRET', 'test-session-secret-0123456789-abcdefghijk')
os.environ.setdefault('BCRYPT_ROUNDS', '4')
os.environ.setdefault('EMAIL_NOTIFICATIONS_ENABLED', 'false')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from bnoverseas.auth import jwt_handler  # noqa: E402
from bnoverseas.auth.passwords import hash_password  # noqa: E402
from bnoverseas.database import Base, get_session_factory  # noqa: E402
from bnoverseas.main import app  # noqa: E402
from bnoverseas.models.user import User, UserRole  # noqa: E402
from bnoverseas.models.user_profile import UserProfile  # noqa: E402

DEFAULT_PASSWORD = 'correct-horse-battery'


class FakeRequest:
    def __init__(self, headers=None, cookies=None):
        self.headers = {key.lower(): value for key, value in (headers or {}).items()}
        self.cookies = cookies or {}
        self.client = None


@pytest.fixture
def session_factory():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(
        email: str = 'student@bnoverseas.com',
        password: str = DEFAULT_PASSWORD,
        role: UserRole = UserRole.STUDENT,
        is_verified: bool = True,
        **fields,
    ) -> User:
        fields.setdefault('first_name', 'Asha')
        fields.setdefault('last_name', 'Rao')
        user = User(
            email=email,
            password_hash=hash_password(password),
            role=role,
            is_verified=is_verified,
            **fields,
        )
        user.profile = UserProfile(interested_countries=['Canada'])
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_request():
    def _make_request(bearer: str | None = None, cookies: dict | None = None, headers: dict | None = None):
        all_headers = dict(headers or {})
        if bearer is not None:
            all_headers['Authorization'] = f'Bearer {bearer}'
        return FakeRequest(headers=all_headers, cookies=cookies)

    return _make_request


@pytest.fixture
def access_token_for():
    def _access_token_for(user: User) -> str:
        return jwt_handler.issue_access_token(jwt_handler.claims_for(user))

    return _access_token_for


@pytest.fixture
def session_token_for():
    def _session_token_for(user: User) -> str:
        return jwt_handler.issue_session_token(jwt_handler.claims_for(user))

    return _session_token_for


@pytest.fixture
def client(session_factory):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
