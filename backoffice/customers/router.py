from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backoffice.customers import schemas, service
from backoffice.database import get_db

router = APIRouter()


@router.get("/{customer_id}/credit", response_model=schemas.CustomerCreditOut)
def available_credit(
    customer_id: str,
    db: Session = Depends(get_db),
):
    return {
        "customer_id": customer_id,
        "available_credit": service.get_available_credit(db, customer_id),
    }
