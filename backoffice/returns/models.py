from datetime import datetime

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship

from backoffice.database import Base


LINE_RETURNED = "returned"
LINE_EXCHANGED = "exchanged"


class ReturnTransaction(Base):
    """A return/exchange document. Written once, never updated."""

    __tablename__ = "return_transactions"

    id = Column(String, primary_key=True, index=True)    # RET-YYMMDD-NNNN

    original_sale_id = Column(
        String,
        ForeignKey("sales.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    return_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    staff_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    customer_id = Column(String, nullable=True, index=True)
    customer_name = Column(String, nullable=True)
    customer_shop_name = Column(String, nullable=True)

    vehicle_id = Column(String, nullable=True)
    notes = Column(String, nullable=True)

    amount_paid = Column(Float, nullable=True)
    payment_summary = Column(String, nullable=True)
    change_given = Column(Float, nullable=True)
    settle_outstanding_amount = Column(Float, nullable=True)
    refund_amount = Column(Float, nullable=True)     # credit added to the customer account
    cash_paid_out = Column(Float, nullable=True)

    cheque_number = Column(String, nullable=True)
    cheque_bank = Column(String, nullable=True)
    cheque_date = Column(DateTime, nullable=True)
    cheque_amount = Column(Float, nullable=True)

    bank_name = Column(String, nullable=True)
    reference_number = Column(String, nullable=True)
    bank_amount = Column(Float, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    items = relationship(
        "ReturnItem",
        back_populates="return_transaction",
        cascade="all, delete-orphan",
        order_by="ReturnItem.id",
    )

    sale = relationship("Sale", back_populates="returns")

    @property
    def returned_items(self):
        return [item for item in self.items if item.line_type == LINE_RETURNED]

    @property
    def exchanged_items(self):
        return [item for item in self.items if item.line_type == LINE_EXCHANGED]


class ReturnItem(Base):
    __tablename__ = "return_items"

    id = Column(Integer, primary_key=True, index=True)
    return_id = Column(
        String,
        ForeignKey("return_transactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    line_type = Column(String, nullable=False)  # returned / exchanged

    product_id = Column(String, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)
    quantity = Column(Integer, nullable=False)
    applied_price = Column(Float, nullable=False)
    sale_type = Column(String, nullable=False, default="retail")

    name = Column(String, nullable=False)
    category = Column(String, nullable=True)
    price = Column(Float, nullable=False, default=0)
    sku = Column(String, nullable=True)
    is_offer_item = Column(Boolean, nullable=False, default=False)

    # Only meaningful on returned lines
    is_resellable = Column(Boolean, nullable=True)

    return_transaction = relationship("ReturnTransaction", back_populates="items")
