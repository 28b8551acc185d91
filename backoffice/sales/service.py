from collections import OrderedDict
from datetime import date, datetime
from typing import Optional

from loguru import logger
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from backoffice.config import business_today
from backoffice.errors import (
    InvariantViolationError,
    LedgerValidationError,
    NotFoundError,
)
from backoffice.payments import service as payment_service
from backoffice.payments.models import Payment
from backoffice.sales import models, schemas
from backoffice.stock.pool import StockPool
from backoffice.stock.products import service as product_service
from backoffice.users.resolver import require_staff_id, resolve_staff


# ============================================================
# SALE IDS
# ============================================================

def generate_sale_id(db: Session, today: Optional[date] = None) -> str:
    """
    Next ``sale-MMDD-N`` id. The per-day counter is bumped with a single
    UPDATE so two writers never read the same value.
    """
    today = today or business_today()
    counter_id = today.isoformat()

    updated = (
        db.query(models.DailySalesCounter)
        .filter(models.DailySalesCounter.id == counter_id)
        .update(
            {models.DailySalesCounter.count: models.DailySalesCounter.count + 1},
            synchronize_session=False,
        )
    )

    if updated:
        count = (
            db.query(models.DailySalesCounter.count)
            .filter(models.DailySalesCounter.id == counter_id)
            .scalar()
        )
    else:
        db.add(models.DailySalesCounter(id=counter_id, count=1))
        db.flush()
        count = 1

    return f"sale-{today:%m%d}-{count}"


# ============================================================
# LOOKUPS
# ============================================================

def get_sale(db: Session, sale_id: str, for_update: bool = False):
    if for_update:
        # Serializes writers on stores with row locks (no-op on SQLite)
        locked = (
            db.query(models.Sale.id)
            .filter(models.Sale.id == sale_id)
            .with_for_update()
            .first()
        )
        if not locked:
            return None

    return (
        db.query(models.Sale)
        .options(
            joinedload(models.Sale.items),
            joinedload(models.Sale.payments),
        )
        .filter(models.Sale.id == sale_id)
        .first()
    )


def get_sale_or_404(db: Session, sale_id: str, for_update: bool = False) -> models.Sale:
    sale = get_sale(db, sale_id, for_update=for_update)
    if not sale:
        raise NotFoundError(f"Sale with ID {sale_id} not found.")
    return sale


def list_sales(db: Session, limit: Optional[int] = None, cursor: Optional[str] = None):
    """Newest first. ``cursor`` is the id of the last sale of the previous page."""
    query = db.query(models.Sale).options(
        joinedload(models.Sale.items),
        joinedload(models.Sale.payments),
    )

    if cursor:
        last = db.query(models.Sale).filter(models.Sale.id == cursor).first()
        if not last:
            raise NotFoundError(f"Sale with ID {cursor} not found.")
        query = query.filter(
            or_(
                models.Sale.sale_date < last.sale_date,
                and_(models.Sale.sale_date == last.sale_date, models.Sale.id < last.id),
            )
        )

    query = query.order_by(models.Sale.sale_date.desc(), models.Sale.id.desc())

    if limit:
        sales = query.limit(limit + 1).all()
        next_cursor = sales[limit - 1].id if len(sales) > limit else None
        sales = sales[:limit]
    else:
        sales = query.all()
        next_cursor = None

    return {"sales": sales, "next_cursor": next_cursor}


# ============================================================
# CREATE SALE
# ============================================================

def _has_details(block) -> bool:
    return block is not None and any(
        value not in (None, "") for value in block.model_dump().values()
    )


def create_sale(db: Session, sale_data: schemas.SaleCreate, default_account: str) -> models.Sale:
    """
    Create a sale with all its items in one transaction.

    Warehouse sales take the sold quantity off ``Product.stock``; vehicle
    sales append UNLOAD_FROM_VEHICLE entries instead. Offer items count too,
    so a later cancellation is an exact reversal.
    """
    if not sale_data.items:
        raise LedgerValidationError("Invalid sale data: Items are missing or empty.")

    staff_id = require_staff_id(db, sale_data.staff_id, default_account)

    try:
        sale_id = sale_data.id or generate_sale_id(db)
        if db.query(models.Sale.id).filter(models.Sale.id == sale_id).first():
            raise InvariantViolationError(f"Sale with ID {sale_id} already exists.")

        # 1️⃣ Stock movements, one per product
        quantities = OrderedDict()
        for item in sale_data.items:
            quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity

        pool = StockPool(db, staff_id)
        for product_id, quantity in quantities.items():
            product = product_service.get_product_or_404(db, product_id)
            if not sale_data.vehicle_id and product.stock < quantity:
                raise InvariantViolationError(
                    f"Insufficient stock for {product.name}. "
                    f"Available: {product.stock}, Tried to sell: {quantity}"
                )
            pool.adjust(product_id, -quantity, vehicle_id=sale_data.vehicle_id, notes=f"Sale: {sale_id}")

        # 2️⃣ Sale header
        sale = models.Sale(
            id=sale_id,
            customer_id=sale_data.customer_id,
            customer_name=sale_data.customer_name,
            customer_shop_name=sale_data.customer_shop_name,
            staff_id=staff_id,
            staff_name=sale_data.staff_name,
            vehicle_id=sale_data.vehicle_id,
            sale_date=sale_data.sale_date or datetime.utcnow(),
            sub_total=sale_data.sub_total,
            discount_percentage=sale_data.discount_percentage or 0,
            discount_amount=sale_data.discount_amount,
            total_amount=sale_data.total_amount,
            paid_amount_cash=sale_data.paid_amount_cash or None,
            paid_amount_cheque=sale_data.paid_amount_cheque or None,
            paid_amount_bank_transfer=sale_data.paid_amount_bank_transfer or None,
            credit_used=sale_data.credit_used or None,
            change_given=sale_data.change_given or None,
            total_amount_paid=sale_data.total_amount_paid,
            outstanding_balance=sale_data.outstanding_balance,
            payment_summary=sale_data.payment_summary,
            offer_applied=sale_data.offer_applied,
            status=models.SALE_STATUS_ACTIVE,
        )

        if sale_data.outstanding_balance > 0:
            sale.initial_outstanding_balance = sale_data.outstanding_balance

        if _has_details(sale_data.cheque_details):
            sale.cheque_number = sale_data.cheque_details.number or None
            sale.cheque_bank = sale_data.cheque_details.bank or None
            sale.cheque_date = sale_data.cheque_details.date
            sale.cheque_amount = sale_data.cheque_details.amount

        if _has_details(sale_data.bank_transfer_details):
            sale.bank_name = sale_data.bank_transfer_details.bank_name or None
            sale.reference_number = sale_data.bank_transfer_details.reference_number or None
            sale.bank_amount = sale_data.bank_transfer_details.amount

        # 3️⃣ Sale items
        for item in sale_data.items:
            sale.items.append(
                models.SaleItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    applied_price=item.applied_price,
                    sale_type=item.sale_type,
                    name=item.name,
                    category=item.category,
                    price=item.price,
                    sku=item.sku,
                    image_url=item.image_url,
                    is_offer_item=item.is_offer_item,
                    returned_quantity=0,
                )
            )

        db.add(sale)
        db.flush()

        # 4️⃣ Payments captured together with the sale
        for extra in sale_data.additional_payments:
            payment_service.add_payment_row(
                db,
                sale_id=sale.id,
                amount=extra.amount,
                method=extra.method,
                staff_id=require_staff_id(db, extra.staff_id or staff_id, default_account),
                date=extra.date,
                notes=extra.notes,
                details=extra.details,
            )

        db.commit()
        db.refresh(sale)

    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Sale {sale.id} created: total {sale.total_amount:.2f}, "
        f"outstanding {sale.outstanding_balance:.2f}, "
        f"{'vehicle ' + sale.vehicle_id if sale.vehicle_id else 'warehouse'}"
    )
    return sale


# ============================================================
# CANCEL SALE
# ============================================================

def cancel_sale(db: Session, sale_id: str, cancellation_reason: str, default_account: str) -> dict:
    """
    Cancel an invoice: put the stock back in the pool it came from, drop
    its payment history and zero its balances. One-way; a cancelled sale
    cannot be cancelled again.
    """
    if not cancellation_reason or not cancellation_reason.strip():
        raise LedgerValidationError("Cancellation reason is required")

    try:
        sale = get_sale_or_404(db, sale_id, for_update=True)

        if sale.is_cancelled:
            raise InvariantViolationError("This invoice has already been cancelled.")

        # Audit user for ledger entries: the original seller, else the default account
        audit_user_id = resolve_staff(db, sale.staff_id, default_account).user_id

        # Warehouse sale: stock goes back on the product.
        # Vehicle sale: LOAD_TO_VEHICLE entry only, the warehouse never changed.
        pool = StockPool(db, audit_user_id)
        for item in sale.items:
            pool.adjust(
                item.product_id,
                item.quantity,
                vehicle_id=sale.vehicle_id,
                notes=f"Cancellation of Sale ID: {sale.id}",
            )

        db.query(Payment).filter(Payment.sale_id == sale.id).delete(synchronize_session=False)

        sale.status = models.SALE_STATUS_CANCELLED
        sale.outstanding_balance = 0
        sale.total_amount_paid = 0
        sale.credit_used = 0
        sale.payment_summary = "Cancelled"
        sale.cancellation_reason = cancellation_reason

        db.commit()

    except Exception:
        db.rollback()
        raise

    logger.info(f"Sale {sale_id} cancelled: {cancellation_reason}")
    return {
        "sale_id": sale_id,
        "status": models.SALE_STATUS_CANCELLED,
        "message": "Invoice cancelled successfully and stock restored.",
    }
