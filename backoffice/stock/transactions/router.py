from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backoffice.config import settings
from backoffice.database import get_db
from backoffice.stock.products import service as product_service
from backoffice.stock.transactions import schemas, service

router = APIRouter()


@router.get("/transactions", response_model=List[schemas.StockTransactionOut])
def list_stock_transactions(
    vehicle_id: Optional[str] = Query(None, description="Only entries for this vehicle"),
    product_id: Optional[str] = Query(None, description="Only entries for this product"),
    db: Session = Depends(get_db),
):
    return service.list_transactions(db, vehicle_id=vehicle_id, product_id=product_id)


@router.post("/transactions", response_model=schemas.StockTransactionOut, status_code=201)
def create_stock_transaction(
    data: schemas.StockTransactionCreate,
    db: Session = Depends(get_db),
):
    return service.create_transaction(db, data, default_account=settings.DEFAULT_ACCOUNT_USERNAME)


@router.get("/vehicles/{vehicle_id}", response_model=schemas.VehicleStockOut)
def vehicle_stock(
    vehicle_id: str,
    db: Session = Depends(get_db),
):
    """
    Stock currently on a vehicle, derived from the ledger:
    loads add, unloads and samples subtract.
    """
    return {
        "vehicle_id": vehicle_id,
        "items": service.get_vehicle_stock(db, vehicle_id),
    }


@router.get("/vehicles/{vehicle_id}/products/{product_id}", response_model=schemas.VehicleProductStockOut)
def vehicle_product_stock(
    vehicle_id: str,
    product_id: str,
    db: Session = Depends(get_db),
):
    product = product_service.get_product_or_404(db, product_id)
    return {
        "vehicle_id": vehicle_id,
        "product_id": product.id,
        "product_name": product.name,
        "quantity": service.get_vehicle_quantity(db, vehicle_id, product.id),
    }
