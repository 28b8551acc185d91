from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy import case, func
from sqlalchemy.orm import Session

from backoffice.stock.products import service as product_service
from backoffice.stock.products.models import Product
from backoffice.stock.transactions import schemas
from backoffice.stock.transactions.models import StockTransaction, StockTransactionType
from backoffice.users.resolver import resolve_staff


# Signed effect of each entry type on a vehicle's derived stock
VEHICLE_INBOUND = (StockTransactionType.LOAD_TO_VEHICLE,)
VEHICLE_OUTBOUND = (StockTransactionType.UNLOAD_FROM_VEHICLE, StockTransactionType.ISSUE_SAMPLE)


# --------------------------
# Internal: append a ledger entry (no commit)
# --------------------------
def record_transaction(
    db: Session,
    product: Product,
    transaction_type: StockTransactionType,
    quantity: int,
    user_id: Optional[str],
    vehicle_id: Optional[str] = None,
    notes: Optional[str] = None,
    transaction_date: Optional[datetime] = None,
    previous_stock: Optional[int] = None,
    new_stock: Optional[int] = None,
    start_meter: Optional[float] = None,
    end_meter: Optional[float] = None,
) -> StockTransaction:
    entry = StockTransaction(
        product_id=product.id,
        product_name=product.name,
        product_sku=product.sku,
        type=transaction_type,
        quantity=quantity,
        previous_stock=product.stock if previous_stock is None else previous_stock,
        new_stock=product.stock if new_stock is None else new_stock,
        transaction_date=transaction_date or datetime.utcnow(),
        notes=notes,
        vehicle_id=vehicle_id,
        user_id=user_id,
        start_meter=start_meter,
        end_meter=end_meter,
    )
    db.add(entry)
    db.flush()
    return entry


def create_transaction(
    db: Session,
    data: schemas.StockTransactionCreate,
    default_account: str,
) -> StockTransaction:
    """
    Log a single stock movement entered by hand (loading a van, wastage,
    samples...). The entry is informational: warehouse stock is not touched.
    """
    try:
        product = product_service.get_product_or_404(db, data.product_id)

        # A missing user is not fatal for a log entry
        resolution = resolve_staff(db, data.user_id, default_account)

        entry = record_transaction(
            db,
            product=product,
            transaction_type=data.type,
            quantity=data.quantity,
            user_id=resolution.user_id,
            vehicle_id=data.vehicle_id,
            notes=data.notes,
            transaction_date=data.transaction_date,
            previous_stock=data.previous_stock,
            new_stock=data.new_stock,
            start_meter=data.start_meter,
            end_meter=data.end_meter,
        )

        db.commit()
        db.refresh(entry)

    except Exception:
        db.rollback()
        raise

    logger.info(f"Stock transaction {entry.type.value} x{entry.quantity} logged for product {product.id}")
    return entry


def list_transactions(
    db: Session,
    vehicle_id: Optional[str] = None,
    product_id: Optional[str] = None,
):
    query = db.query(StockTransaction)

    if vehicle_id:
        query = query.filter(StockTransaction.vehicle_id == vehicle_id)

    if product_id:
        query = query.filter(StockTransaction.product_id == product_id)

    return query.order_by(StockTransaction.transaction_date.desc()).all()


def get_vehicle_stock(db: Session, vehicle_id: str):
    """Per-product quantity on a vehicle, summed from its ledger entries."""
    signed_quantity = case(
        (StockTransaction.type.in_(VEHICLE_INBOUND), StockTransaction.quantity),
        (StockTransaction.type.in_(VEHICLE_OUTBOUND), -StockTransaction.quantity),
        else_=0,
    )

    rows = (
        db.query(
            StockTransaction.product_id,
            func.max(StockTransaction.product_name).label("product_name"),
            func.coalesce(func.sum(signed_quantity), 0).label("quantity"),
        )
        .filter(StockTransaction.vehicle_id == vehicle_id)
        .group_by(StockTransaction.product_id)
        .order_by(StockTransaction.product_id)
        .all()
    )

    return [
        {
            "product_id": row.product_id,
            "product_name": row.product_name,
            "quantity": int(row.quantity),
        }
        for row in rows
    ]


def get_vehicle_quantity(db: Session, vehicle_id: str, product_id: str) -> int:
    for line in get_vehicle_stock(db, vehicle_id):
        if line["product_id"] == product_id:
            return line["quantity"]
    return 0
