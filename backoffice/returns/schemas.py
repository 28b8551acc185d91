from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from backoffice.payments.schemas import BankTransferInfo, ChequeInfo


# ---------- Lines ----------
class ReturnLineIn(BaseModel):
    product_id: str
    quantity: int = Field(gt=0)
    applied_price: float
    sale_type: Literal["retail", "wholesale"] = "retail"

    name: str
    category: Optional[str] = None
    price: float = 0
    sku: Optional[str] = None
    is_offer_item: bool = False


class ReturnedLineIn(ReturnLineIn):
    # Resellable goods go back into stock, the rest is written off
    is_resellable: bool = False


class ReturnItemOut(BaseModel):
    id: int
    line_type: str
    product_id: str
    quantity: int
    applied_price: float
    sale_type: str
    name: str
    category: Optional[str] = None
    price: float
    sku: Optional[str] = None
    is_offer_item: bool
    is_resellable: Optional[bool] = None

    class Config:
        from_attributes = True


# ---------- Money collected during an exchange ----------
class ReturnPaymentIn(BaseModel):
    amount_paid: float = Field(ge=0)
    payment_summary: Optional[str] = None
    change_given: Optional[float] = None
    cheque_details: Optional[ChequeInfo] = None
    bank_transfer_details: Optional[BankTransferInfo] = None


# ---------- Return / Exchange ----------
class ReturnCreate(BaseModel):
    sale_id: str
    staff_id: str                      # id or username

    returned_items: List[ReturnedLineIn] = []
    exchanged_items: List[ReturnLineIn] = []

    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_shop_name: Optional[str] = None

    settle_outstanding_amount: Optional[float] = Field(None, ge=0)
    refund_amount: Optional[float] = Field(None, ge=0)       # credit added to the account
    cash_paid_out: Optional[float] = Field(None, ge=0)       # cash handed back

    payment: Optional[ReturnPaymentIn] = None
    vehicle_id: Optional[str] = None


class ReturnOut(BaseModel):
    id: str
    original_sale_id: str
    return_date: datetime
    staff_id: Optional[str] = None

    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_shop_name: Optional[str] = None
    vehicle_id: Optional[str] = None
    notes: Optional[str] = None

    amount_paid: Optional[float] = None
    payment_summary: Optional[str] = None
    change_given: Optional[float] = None
    settle_outstanding_amount: Optional[float] = None
    refund_amount: Optional[float] = None
    cash_paid_out: Optional[float] = None

    cheque_number: Optional[str] = None
    cheque_bank: Optional[str] = None
    cheque_date: Optional[datetime] = None
    cheque_amount: Optional[float] = None
    bank_name: Optional[str] = None
    reference_number: Optional[str] = None
    bank_amount: Optional[float] = None

    created_at: Optional[datetime] = None

    returned_items: List[ReturnItemOut] = []
    exchanged_items: List[ReturnItemOut] = []

    class Config:
        from_attributes = True


class ReturnProcessedOut(BaseModel):
    message: str
    return_id: str
    return_data: ReturnOut
