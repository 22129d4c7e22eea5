"""User domain model: maps to the 'users' table."""

from sqlalchemy import Boolean, Column, String, Text

from securepay.core.timeutils import utcnow
from securepay.infrastructure.database import Base, UTCDateTime, new_id


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String(254), unique=True, nullable=False, index=True)
    # NULLs never collide under a SQL unique constraint, so absent values are sparse
    username = Column(String(100), unique=True, nullable=True)
    account_number = Column(String(64), unique=True, nullable=True)
    id_number = Column(String(64), nullable=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(200), nullable=True)
    phone_number = Column(String(32), nullable=True)
    address = Column(Text, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    is_staff = Column(Boolean, nullable=False, default=False)
    created_at = Column(UTCDateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<User {self.email}>"
