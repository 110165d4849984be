"""Login session bookkeeping.

Rows are an audit log of issued access tokens. Access is granted by the
token signature and expiry alone, so deleting a row does not revoke a token.
"""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from bnoverseas.core.utils import generate_id, utc_now
from bnoverseas.database import Base


class UserSession(Base):
    __tablename__ = "user_sessions"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    token = Column(Text, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    device_info = Column(String(500), default="")
    ip_address = Column(String(100), default="")
    created_at = Column(DateTime, nullable=False, default=utc_now)

    user = relationship("User", back_populates="sessions")
