"""Server-side login session: maps to the 'user_sessions' table."""

from sqlalchemy import Boolean, Column, ForeignKey, String

from securepay.core.timeutils import utcnow
from securepay.infrastructure.database import Base, UTCDateTime, new_id


class UserSession(Base):
    __tablename__ = "user_sessions"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    session_token = Column(String(128), unique=True, nullable=False)
    expires_at = Column(UTCDateTime(timezone=True), nullable=False, index=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<UserSession user={self.user_id} active={self.is_active}>"
