from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


# -------------------------
# Detail blocks
# -------------------------
class ChequeInfo(BaseModel):
    number: Optional[str] = None
    bank: Optional[str] = None
    date: Optional[datetime] = None
    amount: Optional[float] = None


class BankTransferInfo(BaseModel):
    bank_name: Optional[str] = None
    reference_number: Optional[str] = None
    amount: Optional[float] = None


class PaymentDetails(BaseModel):
    """Cheque and/or bank-transfer detail sent with a single payment."""

    number: Optional[str] = None
    bank: Optional[str] = None
    date: Optional[datetime] = None
    bank_name: Optional[str] = None
    reference_number: Optional[str] = None
    amount: Optional[float] = None


# -------------------------
# Create Payment
# -------------------------
class PaymentCreate(BaseModel):
    amount: float
    method: Literal["Cash", "Cheque", "BankTransfer"]
    date: Optional[datetime] = None
    notes: Optional[str] = None
    details: Optional[PaymentDetails] = None
    staff_id: str                           # id or username


class SalePaymentIn(BaseModel):
    """Payment carried inside a sale payload."""

    amount: float
    method: Literal["Cash", "Cheque", "BankTransfer", "ReturnCredit"]
    date: Optional[datetime] = None
    notes: Optional[str] = None
    details: Optional[PaymentDetails] = None
    staff_id: Optional[str] = None


# -------------------------
# Output / Response Schema
# -------------------------
class PaymentOut(BaseModel):
    id: str
    sale_id: str
    amount: float
    method: str
    date: datetime
    notes: Optional[str] = None
    staff_id: Optional[str] = None

    cheque_number: Optional[str] = None
    cheque_bank: Optional[str] = None
    cheque_date: Optional[datetime] = None
    cheque_amount: Optional[float] = None

    bank_name: Optional[str] = None
    reference_number: Optional[str] = None
    bank_amount: Optional[float] = None

    class Config:
        from_attributes = True
