import uuid
from datetime import datetime

from sqlalchemy import Column, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from backoffice.database import Base


RETURN_CREDIT = "ReturnCredit"


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    sale_id = Column(
        String,
        ForeignKey("sales.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    amount = Column(Float, nullable=False)
    method = Column(String, nullable=False)  # Cash / Cheque / BankTransfer / ReturnCredit
    date = Column(DateTime, default=datetime.utcnow, nullable=False)
    notes = Column(String, nullable=True)

    staff_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    cheque_number = Column(String, nullable=True)
    cheque_bank = Column(String, nullable=True)
    cheque_date = Column(DateTime, nullable=True)
    cheque_amount = Column(Float, nullable=True)

    bank_name = Column(String, nullable=True)
    reference_number = Column(String, nullable=True)
    bank_amount = Column(Float, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    sale = relationship("Sale", back_populates="payments")
    staff = relationship("User")
