from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backoffice.config import settings
from backoffice.database import get_db
from backoffice.payments import schemas, service
from backoffice.sales.schemas import SaleOut

router = APIRouter()


# -------------------------
# Record Payment for Sale
# -------------------------
@router.post("/sale/{sale_id}", response_model=SaleOut)
def create_payment_for_sale(
    sale_id: str,
    payment: schemas.PaymentCreate,
    db: Session = Depends(get_db),
):
    """
    Record an additional (partial or final) payment against a sale.
    Returns the updated sale with its full payment history.
    """
    return service.record_payment(
        db=db,
        sale_id=sale_id,
        payment=payment,
        default_account=settings.DEFAULT_ACCOUNT_USERNAME,
    )


# -------------------------
# List payments by sale
# -------------------------
@router.get("/sale/{sale_id}", response_model=List[schemas.PaymentOut])
def list_payments_by_sale(
    sale_id: str,
    db: Session = Depends(get_db),
):
    return service.list_payments_by_sale(db, sale_id)
