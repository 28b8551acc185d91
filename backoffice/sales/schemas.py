from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from backoffice.payments.schemas import BankTransferInfo, ChequeInfo, PaymentOut, SalePaymentIn


# ---------- Sale Item ----------
class SaleItemData(BaseModel):
    product_id: str
    quantity: int = Field(gt=0)
    applied_price: float
    sale_type: Literal["retail", "wholesale"] = "retail"

    # Denormalized product details at the time of sale
    name: str
    category: Optional[str] = None
    price: float = 0
    sku: Optional[str] = None
    image_url: Optional[str] = None

    is_offer_item: bool = False


class SaleItemOut(BaseModel):
    id: int
    product_id: str
    quantity: int
    applied_price: float
    sale_type: str
    name: str
    category: Optional[str] = None
    price: float
    sku: Optional[str] = None
    image_url: Optional[str] = None
    is_offer_item: bool
    returned_quantity: int = 0

    class Config:
        from_attributes = True


# ---------- Sale ----------
class SaleCreate(BaseModel):
    id: Optional[str] = None       # generated when omitted
    items: List[SaleItemData] = Field(min_length=1)

    sub_total: float
    discount_percentage: float = 0
    discount_amount: float
    total_amount: float
    total_amount_paid: float
    outstanding_balance: float
    payment_summary: str

    sale_date: Optional[datetime] = None
    staff_id: Optional[str] = None     # id or username
    staff_name: Optional[str] = None
    offer_applied: bool = False

    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_shop_name: Optional[str] = None
    vehicle_id: Optional[str] = None

    paid_amount_cash: Optional[float] = None
    paid_amount_cheque: Optional[float] = None
    paid_amount_bank_transfer: Optional[float] = None
    credit_used: Optional[float] = None
    change_given: Optional[float] = None

    cheque_details: Optional[ChequeInfo] = None
    bank_transfer_details: Optional[BankTransferInfo] = None

    additional_payments: List[SalePaymentIn] = []


class SaleOut(BaseModel):
    id: str
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_shop_name: Optional[str] = None
    staff_id: Optional[str] = None
    staff_name: Optional[str] = None
    vehicle_id: Optional[str] = None
    sale_date: datetime

    sub_total: float
    discount_percentage: float
    discount_amount: float
    total_amount: float

    paid_amount_cash: Optional[float] = None
    paid_amount_cheque: Optional[float] = None
    paid_amount_bank_transfer: Optional[float] = None
    credit_used: Optional[float] = None
    change_given: Optional[float] = None

    cheque_number: Optional[str] = None
    cheque_bank: Optional[str] = None
    cheque_date: Optional[datetime] = None
    cheque_amount: Optional[float] = None
    bank_name: Optional[str] = None
    reference_number: Optional[str] = None
    bank_amount: Optional[float] = None

    total_amount_paid: float
    outstanding_balance: float
    initial_outstanding_balance: Optional[float] = None
    payment_summary: str
    offer_applied: bool

    status: str
    cancellation_reason: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    items: List[SaleItemOut] = []
    payments: List[PaymentOut] = []

    class Config:
        from_attributes = True


class SalesListResponse(BaseModel):
    sales: List[SaleOut]
    next_cursor: Optional[str] = None


# ---------- Cancellation ----------
class SaleCancel(BaseModel):
    cancellation_reason: str


class SaleCancelOut(BaseModel):
    sale_id: str
    status: str
    message: str
