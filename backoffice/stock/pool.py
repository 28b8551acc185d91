from typing import Optional

from sqlalchemy.orm import Session

from backoffice.stock.products import service as product_service
from backoffice.stock.products.models import Product
from backoffice.stock.transactions import service as transaction_service
from backoffice.stock.transactions.models import StockTransactionType


class StockPool:
    """
    Single entry point for stock movements in either pool.

    Warehouse (no vehicle id): the product's ``stock`` counter is mutated.
    Vehicle: a LOAD_TO_VEHICLE (delta > 0) or UNLOAD_FROM_VEHICLE (delta < 0)
    entry is appended to the ledger and warehouse stock is left alone.

    Nothing is committed here; the caller owns the transaction.
    """

    def __init__(self, db: Session, user_id: Optional[str]):
        self.db = db
        self.user_id = user_id

    def adjust(
        self,
        product_id: str,
        delta: int,
        vehicle_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Product:
        product = product_service.get_product_or_404(self.db, product_id)

        if delta == 0:
            return product

        if vehicle_id is None:
            return product_service.change_warehouse_stock(self.db, product, delta)

        transaction_type = (
            StockTransactionType.LOAD_TO_VEHICLE
            if delta > 0
            else StockTransactionType.UNLOAD_FROM_VEHICLE
        )
        transaction_service.record_transaction(
            self.db,
            product=product,
            transaction_type=transaction_type,
            quantity=abs(delta),
            user_id=self.user_id,
            vehicle_id=vehicle_id,
            notes=notes,
        )
        return product
