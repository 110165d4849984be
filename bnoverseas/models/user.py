"""User model definitions."""

import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, String
from sqlalchemy.orm import relationship

from bnoverseas.core.utils import generate_id, utc_now
from bnoverseas.database import Base
from bnoverseas.models.user_profile import UserProfile
from bnoverseas.models.user_session import UserSession


class UserRole(str, enum.Enum):
    STUDENT = "STUDENT"
    INSTRUCTOR = "INSTRUCTOR"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    phone = Column(String(40))
    country = Column(String(100))
    study_level = Column(String(100))
    role = Column(Enum(UserRole, name="user_role"), nullable=False, default=UserRole.STUDENT)

    is_verified = Column(Boolean, nullable=False, default=False)
    email_verified_at = Column(DateTime)
    verification_token = Column(String(128), index=True)
    verification_otp = Column(String(6))
    otp_expiry = Column(DateTime)
    reset_token = Column(String(128), index=True)
    reset_token_expiry = Column(DateTime)

    last_login = Column(DateTime)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    profile = relationship(UserProfile, back_populates="user", uselist=False, cascade="all, delete-orphan")
    sessions = relationship(UserSession, back_populates="user", cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def is_admin(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.SUPER_ADMIN)
