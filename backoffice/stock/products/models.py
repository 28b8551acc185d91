import uuid
from datetime import datetime

from sqlalchemy import Column, Integer, String, Float, DateTime

from backoffice.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    category = Column(String, nullable=True)
    sku = Column(String, nullable=True, index=True)

    price = Column(Float, nullable=False, default=0)
    wholesale_price = Column(Float, nullable=True)

    # Warehouse pool only. Vehicle quantities live in the stock ledger.
    stock = Column(Integer, nullable=False, default=0)
    reorder_level = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
