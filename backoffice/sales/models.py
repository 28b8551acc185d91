from datetime import datetime

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship

from backoffice.database import Base


SALE_STATUS_ACTIVE = "active"
SALE_STATUS_CANCELLED = "cancelled"


class Sale(Base):
    __tablename__ = "sales"

    # Opaque: supplied by the caller or generated as sale-MMDD-N
    id = Column(String, primary_key=True, index=True)

    customer_id = Column(String, nullable=True, index=True)
    customer_name = Column(String, nullable=True)
    customer_shop_name = Column(String, nullable=True)

    staff_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    staff_name = Column(String, nullable=True)

    # NULL => warehouse sale
    vehicle_id = Column(String, nullable=True, index=True)

    sale_date = Column(DateTime, default=datetime.utcnow, nullable=False)

    sub_total = Column(Float, nullable=False, default=0)
    discount_percentage = Column(Float, nullable=False, default=0)
    discount_amount = Column(Float, nullable=False, default=0)
    total_amount = Column(Float, nullable=False, default=0)

    # Amounts tendered at the till
    paid_amount_cash = Column(Float, nullable=True)
    paid_amount_cheque = Column(Float, nullable=True)
    paid_amount_bank_transfer = Column(Float, nullable=True)
    credit_used = Column(Float, nullable=True)
    change_given = Column(Float, nullable=True)

    cheque_number = Column(String, nullable=True)
    cheque_bank = Column(String, nullable=True)
    cheque_date = Column(DateTime, nullable=True)
    cheque_amount = Column(Float, nullable=True)

    bank_name = Column(String, nullable=True)
    reference_number = Column(String, nullable=True)
    bank_amount = Column(Float, nullable=True)

    total_amount_paid = Column(Float, nullable=False, default=0)
    outstanding_balance = Column(Float, nullable=False, default=0)
    # Written once at creation, only when something was left owing
    initial_outstanding_balance = Column(Float, nullable=True)

    payment_summary = Column(String, nullable=False, default="N/A")
    offer_applied = Column(Boolean, nullable=False, default=False)

    status = Column(String, nullable=False, default=SALE_STATUS_ACTIVE, index=True)
    cancellation_reason = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
    )

    payments = relationship(
        "Payment",
        back_populates="sale",
        order_by="Payment.date",
    )

    returns = relationship(
        "ReturnTransaction",
        back_populates="sale",
        order_by="ReturnTransaction.id",
    )

    staff = relationship("User")

    @property
    def is_cancelled(self) -> bool:
        return self.status == SALE_STATUS_CANCELLED


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True, index=True)
    sale_id = Column(
        String,
        ForeignKey("sales.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    product_id = Column(String, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)

    quantity = Column(Integer, nullable=False)
    applied_price = Column(Float, nullable=False)
    sale_type = Column(String, nullable=False, default="retail")  # retail / wholesale

    # Product details frozen at the time of sale
    name = Column(String, nullable=False)
    category = Column(String, nullable=True)
    price = Column(Float, nullable=False, default=0)
    sku = Column(String, nullable=True)
    image_url = Column(String, nullable=True)

    is_offer_item = Column(Boolean, nullable=False, default=False)

    # Informational, bumped by returns
    returned_quantity = Column(Integer, nullable=False, default=0)

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")


class DailySalesCounter(Base):
    """Per-day sequence backing generated sale ids."""

    __tablename__ = "daily_sales_counters"

    id = Column(String, primary_key=True)     # YYYY-MM-DD
    count = Column(Integer, nullable=False, default=0)
