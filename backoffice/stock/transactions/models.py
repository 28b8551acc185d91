import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship

from backoffice.database import Base


class StockTransactionType(str, enum.Enum):
    ADD_STOCK_INVENTORY = "ADD_STOCK_INVENTORY"
    LOAD_TO_VEHICLE = "LOAD_TO_VEHICLE"
    UNLOAD_FROM_VEHICLE = "UNLOAD_FROM_VEHICLE"
    ISSUE_SAMPLE = "ISSUE_SAMPLE"
    REMOVE_STOCK_WASTAGE = "REMOVE_STOCK_WASTAGE"
    STOCK_ADJUSTMENT_MANUAL = "STOCK_ADJUSTMENT_MANUAL"


class StockTransaction(Base):
    """Append-only stock movement. Rows are never updated or deleted."""

    __tablename__ = "stock_transactions"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    product_id = Column(
        String,
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    product_name = Column(String, nullable=False)
    product_sku = Column(String, nullable=True)

    type = Column(Enum(StockTransactionType, native_enum=False), nullable=False)
    quantity = Column(Integer, nullable=False)

    # Warehouse snapshot at the time; informational only on vehicle entries
    previous_stock = Column(Integer, nullable=False, default=0)
    new_stock = Column(Integer, nullable=False, default=0)

    transaction_date = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    notes = Column(String, nullable=True)

    # NULL => warehouse
    vehicle_id = Column(String, nullable=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    start_meter = Column(Float, nullable=True)
    end_meter = Column(Float, nullable=True)

    product = relationship("Product")
    user = relationship("User")
