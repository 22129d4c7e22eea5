"""Payment transaction domain model: maps to the 'payment_transactions' table."""

import enum

from sqlalchemy import Boolean, Column, ForeignKey, Numeric, String

from securepay.core.timeutils import utcnow
from securepay.infrastructure.database import Base, UTCDateTime, new_id


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


class PaymentTransaction(Base):
    __tablename__ = "payment_transactions"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    user_account = Column(String(64), nullable=True)

    recipient_name = Column(String(100), nullable=False)
    recipient_account = Column(String(64), nullable=False)
    recipient_bank = Column(String(100), nullable=False)
    recipient_country = Column(String(56), nullable=False)
    swift_code = Column(String(11), nullable=True)

    amount = Column(Numeric(18, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    exchange_rate = Column(Numeric(18, 8), nullable=True)
    converted_amount = Column(Numeric(18, 4), nullable=True)
    purpose = Column(String(200), nullable=True)

    reference_number = Column(String(32), unique=True, nullable=False)
    status = Column(String(20), nullable=False, default=TransactionStatus.PENDING.value, index=True)
    # amount (2 places) x fee rate (4 places)
    transaction_fee = Column(Numeric(18, 6), nullable=False, default=0)
    is_processed = Column(Boolean, nullable=False, default=False)
    processed_at = Column(UTCDateTime(timezone=True), nullable=True)
    rejection_reason = Column(String(200), nullable=True)

    created_at = Column(UTCDateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self):
        return f"<PaymentTransaction {self.reference_number} {self.status}>"
