from threading import Lock

from fastapi import Depends
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from bnoverseas.core import config


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(config.DATABASE_URL, connect_args=_connect_args(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_user_schema_checked = False


def get_session_factory() -> sessionmaker:
    return SessionLocal


def get_db(session_factory: sessionmaker = Depends(get_session_factory)):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def commit(db) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def ensure_user_schema() -> None:
    """Add verification and reset columns to a users table created before they existed."""
    global _user_schema_checked

    if _user_schema_checked:
        return

    with _schema_lock:
        if _user_schema_checked:
            return

        inspector = inspect(engine)

        if 'users' not in inspector.get_table_names():
            _user_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('users')}
        migration_steps = [
            ('is_verified', 'ALTER TABLE users ADD COLUMN is_verified BOOLEAN DEFAULT FALSE'),
            ('email_verified_at', 'ALTER TABLE users ADD COLUMN email_verified_at TIMESTAMP'),
            ('verification_token', 'ALTER TABLE users ADD COLUMN verification_token VARCHAR(128)'),
            ('verification_otp', 'ALTER TABLE users ADD COLUMN verification_otp VARCHAR(6)'),
            ('otp_expiry', 'ALTER TABLE users ADD COLUMN otp_expiry TIMESTAMP'),
            ('reset_token', 'ALTER TABLE users ADD COLUMN reset_token VARCHAR(128)'),
            ('reset_token_expiry', 'ALTER TABLE users ADD COLUMN reset_token_expiry TIMESTAMP'),
            ('last_login', 'ALTER TABLE users ADD COLUMN last_login TIMESTAMP'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_users_verification_token ON users(verification_token)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_users_reset_token ON users(reset_token)')
            )

        _user_schema_checked = True
