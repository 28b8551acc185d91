from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backoffice.config import settings
from backoffice.database import get_db
from backoffice.errors import NotFoundError
from backoffice.returns import schemas, service

router = APIRouter()


@router.post("/", response_model=schemas.ReturnProcessedOut, status_code=201)
def process_return_endpoint(
    data: schemas.ReturnCreate,
    db: Session = Depends(get_db),
):
    """
    Process a return and/or exchange against an original sale.
    Stock goes to the vehicle when vehicle_id is given, else the warehouse.
    """
    return_transaction = service.process_return(
        db, data, default_account=settings.DEFAULT_ACCOUNT_USERNAME
    )
    return {
        "message": "Return/Exchange processed successfully and stock updated.",
        "return_id": return_transaction.id,
        "return_data": return_transaction,
    }


@router.get("/history", response_model=List[schemas.ReturnOut])
def return_history(
    sale_id: Optional[str] = Query(None, description="Only returns against this sale"),
    db: Session = Depends(get_db),
):
    return service.list_returns(db, sale_id=sale_id)


@router.get("/{return_id}", response_model=schemas.ReturnOut)
def get_return(
    return_id: str,
    db: Session = Depends(get_db),
):
    return_transaction = service.get_return(db, return_id)
    if not return_transaction:
        raise NotFoundError("Return transaction not found")
    return return_transaction
