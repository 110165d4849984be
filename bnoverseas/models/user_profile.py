"""User profile model definitions."""

from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from bnoverseas.core.utils import generate_id, utc_now
from bnoverseas.database import Base


class UserProfile(Base):
    """Study preferences and contact details attached to a user."""
    __tablename__ = "user_profiles"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)
    bio = Column(Text)
    date_of_birth = Column(Date)
    address = Column(String(255))
    city = Column(String(100))
    state = Column(String(100))
    zip_code = Column(String(20))
    emergency_contact = Column(String(255))
    interested_countries = Column(JSON, default=list)
    field_of_interest = Column(String(255))
    budget_range = Column(String(100))
    intake_preference = Column(String(100))
    avatar_url = Column(String(500))
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    user = relationship("User", back_populates="profile")
