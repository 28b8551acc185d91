from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from backoffice.stock.transactions.models import StockTransactionType


class StockTransactionCreate(BaseModel):
    product_id: str
    type: StockTransactionType
    quantity: int = Field(gt=0)
    previous_stock: Optional[int] = None
    new_stock: Optional[int] = None
    transaction_date: Optional[datetime] = None
    notes: Optional[str] = None
    vehicle_id: Optional[str] = None
    user_id: Optional[str] = None     # id or username
    start_meter: Optional[float] = None
    end_meter: Optional[float] = None


class StockTransactionOut(BaseModel):
    id: str
    product_id: str
    product_name: str
    product_sku: Optional[str] = None
    type: StockTransactionType
    quantity: int
    previous_stock: int
    new_stock: int
    transaction_date: datetime
    notes: Optional[str] = None
    vehicle_id: Optional[str] = None
    user_id: Optional[str] = None
    start_meter: Optional[float] = None
    end_meter: Optional[float] = None

    class Config:
        from_attributes = True


class VehicleStockLine(BaseModel):
    product_id: str
    product_name: str
    quantity: int


class VehicleStockOut(BaseModel):
    vehicle_id: str
    items: List[VehicleStockLine]


class VehicleProductStockOut(BaseModel):
    vehicle_id: str
    product_id: str
    product_name: str
    quantity: int
