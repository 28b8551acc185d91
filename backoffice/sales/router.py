from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backoffice.config import settings
from backoffice.database import get_db
from backoffice.errors import NotFoundError
from backoffice.sales import schemas, service

router = APIRouter()


@router.post("/", response_model=schemas.SaleOut, status_code=201)
def create_sale_endpoint(
    sale_data: schemas.SaleCreate,
    db: Session = Depends(get_db),
):
    """
    Create a sale + all items in a single transaction and move the stock.
    """
    return service.create_sale(db, sale_data, default_account=settings.DEFAULT_ACCOUNT_USERNAME)


@router.get("/", response_model=schemas.SalesListResponse)
def list_sales(
    limit: Optional[int] = Query(None, ge=1, le=500),
    cursor: Optional[str] = Query(None, description="ID of the last sale from the previous page"),
    db: Session = Depends(get_db),
):
    return service.list_sales(db=db, limit=limit, cursor=cursor)


@router.get("/{sale_id}", response_model=schemas.SaleOut)
def get_sale(
    sale_id: str,
    db: Session = Depends(get_db),
):
    sale = service.get_sale(db, sale_id)
    if not sale:
        raise NotFoundError("Sale not found")
    return sale


@router.post("/{sale_id}/cancel", response_model=schemas.SaleCancelOut)
def cancel_sale(
    sale_id: str,
    data: schemas.SaleCancel,
    db: Session = Depends(get_db),
):
    """
    Cancel an invoice. Stock is restored to its pool and the payment
    history is removed. A cancelled invoice cannot be reactivated.
    """
    return service.cancel_sale(
        db=db,
        sale_id=sale_id,
        cancellation_reason=data.cancellation_reason,
        default_account=settings.DEFAULT_ACCOUNT_USERNAME,
    )
