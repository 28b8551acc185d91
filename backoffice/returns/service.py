"""
Return / exchange processing.

A return document gives goods back against an original sale (returned
lines) and/or hands new goods out in their place (exchanged lines). It can
also settle part of the sale's outstanding balance, credit the customer
account, or record cash paid out.

Everything for one document happens in a single session transaction: the
balance settlement, every stock movement and the document itself are
committed together or not at all.
"""

from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy.orm import Session, joinedload

from backoffice.errors import (
    InvariantViolationError,
    LedgerValidationError,
    NotFoundError,
)
from backoffice.payments import service as payment_service
from backoffice.payments.models import RETURN_CREDIT
from backoffice.returns import models, schemas
from backoffice.returns.document_ids import generate_return_id
from backoffice.sales import service as sales_service
from backoffice.stock.pool import StockPool
from backoffice.users.resolver import require_staff_id


def _is_empty(data: schemas.ReturnCreate) -> bool:
    return (
        not data.returned_items
        and not data.exchanged_items
        and not data.refund_amount
        and not data.cash_paid_out
        and not data.settle_outstanding_amount
    )


def _returned_so_far(sale, product_id: str, sale_type: str) -> int:
    """Quantity of a (product, sale type) pair already returned by earlier documents."""
    return sum(
        item.quantity
        for ret in sale.returns
        for item in ret.items
        if item.line_type == models.LINE_RETURNED
        and item.product_id == product_id
        and item.sale_type == sale_type
    )


def _return_line(line, line_type: str, is_resellable: Optional[bool] = None) -> models.ReturnItem:
    return models.ReturnItem(
        line_type=line_type,
        product_id=line.product_id,
        quantity=line.quantity,
        applied_price=line.applied_price,
        sale_type=line.sale_type,
        name=line.name,
        category=line.category,
        price=line.price,
        sku=line.sku,
        is_offer_item=line.is_offer_item,
        is_resellable=is_resellable,
    )


def process_return(
    db: Session,
    data: schemas.ReturnCreate,
    default_account: str,
) -> models.ReturnTransaction:
    if not (data.sale_id or "").strip() or not (data.staff_id or "").strip():
        raise LedgerValidationError("Invalid request body. Missing required fields.")

    if _is_empty(data):
        raise LedgerValidationError("Cannot process an empty transaction with no financial impact.")

    try:
        # 1. Staff
        staff_id = require_staff_id(db, data.staff_id, default_account)

        # 2. Document id
        return_id = generate_return_id(db)

        # 3. Original sale, its items and earlier returns
        sale = sales_service.get_sale_or_404(db, data.sale_id, for_update=True)

        # 4. Settle outstanding balance with return credit
        settle_amount = data.settle_outstanding_amount or 0
        if settle_amount > 0:
            if round(sale.outstanding_balance, 2) < round(settle_amount, 2):
                raise InvariantViolationError(
                    f"Cannot settle {settle_amount:.2f}. "
                    f"Outstanding balance is only {sale.outstanding_balance:.2f}."
                )

            payment_service.add_payment_row(
                db,
                sale_id=sale.id,
                amount=settle_amount,
                method=RETURN_CREDIT,
                staff_id=staff_id,
                notes=f"Credit from Return ID: {return_id}",
            )
            sale.outstanding_balance = round(sale.outstanding_balance - settle_amount, 2)
            sale.total_amount_paid = round(sale.total_amount_paid + settle_amount, 2)

        pool = StockPool(db, staff_id)

        # 5. Exchanged goods leave stock
        for line in data.exchanged_items:
            pool.adjust(
                line.product_id,
                -line.quantity,
                vehicle_id=data.vehicle_id,
                notes=f"Exchange in Return: {return_id}",
            )

        # 6. Returned goods, capped by what was sold and not yet returned
        requested = {}
        for line in data.returned_items:
            key = (line.product_id, line.sale_type)
            sale_lines = [
                si for si in sale.items
                if si.product_id == line.product_id and si.sale_type == line.sale_type
            ]
            if not sale_lines:
                raise NotFoundError(f"Item {line.name} not found in original sale.")

            sold = sum(si.quantity for si in sale_lines)
            already_returned = _returned_so_far(sale, *key) + requested.get(key, 0)

            if already_returned + line.quantity > sold:
                logger.warning(
                    f"Return on sale {sale.id} rejected: {line.name} ({line.sale_type}) "
                    f"requested {line.quantity}, already returned {already_returned}, sold {sold}"
                )
                raise InvariantViolationError(
                    f"Cannot return {line.quantity} of {line.name}. "
                    f"Already returned: {already_returned}, Max: {sold}"
                )
            requested[key] = requested.get(key, 0) + line.quantity

            if line.is_resellable:
                pool.adjust(
                    line.product_id,
                    line.quantity,
                    vehicle_id=data.vehicle_id,
                    notes=(
                        f"Resellable return to vehicle. Return ID: {return_id}"
                        if data.vehicle_id
                        else f"Resellable return. Return ID: {return_id}"
                    ),
                )

            sale_lines[0].returned_quantity = (sale_lines[0].returned_quantity or 0) + line.quantity

        # 7. The document
        payment = data.payment
        cheque = payment.cheque_details if payment else None
        bank = payment.bank_transfer_details if payment else None

        return_transaction = models.ReturnTransaction(
            id=return_id,
            original_sale_id=sale.id,
            return_date=datetime.utcnow(),
            staff_id=staff_id,
            customer_id=data.customer_id or None,
            customer_name=data.customer_name or None,
            customer_shop_name=data.customer_shop_name or None,
            vehicle_id=data.vehicle_id or None,
            notes=f"Return/Exchange for Sale {sale.id}",
            amount_paid=payment.amount_paid if payment and payment.amount_paid else None,
            payment_summary=payment.payment_summary if payment else None,
            change_given=payment.change_given if payment and payment.change_given else None,
            settle_outstanding_amount=settle_amount or None,
            refund_amount=data.refund_amount or None,
            cash_paid_out=data.cash_paid_out or None,
            cheque_number=cheque.number if cheque else None,
            cheque_bank=cheque.bank if cheque else None,
            cheque_date=cheque.date if cheque else None,
            cheque_amount=cheque.amount if cheque else None,
            bank_name=bank.bank_name if bank else None,
            reference_number=bank.reference_number if bank else None,
            bank_amount=bank.amount if bank else None,
        )

        for line in data.returned_items:
            return_transaction.items.append(_return_line(line, models.LINE_RETURNED, line.is_resellable))
        for line in data.exchanged_items:
            return_transaction.items.append(_return_line(line, models.LINE_EXCHANGED))

        db.add(return_transaction)
        db.commit()
        db.refresh(return_transaction)

    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Return {return_transaction.id} processed for sale {data.sale_id}: "
        f"{len(data.returned_items)} returned, {len(data.exchanged_items)} exchanged line(s)"
    )
    return return_transaction


# =========================
# Read side
# =========================
def get_return(db: Session, return_id: str):
    return (
        db.query(models.ReturnTransaction)
        .options(joinedload(models.ReturnTransaction.items))
        .filter(models.ReturnTransaction.id == return_id)
        .first()
    )


def list_returns(db: Session, sale_id: Optional[str] = None):
    query = db.query(models.ReturnTransaction).options(
        joinedload(models.ReturnTransaction.items)
    )

    if sale_id:
        query = query.filter(models.ReturnTransaction.original_sale_id == sale_id)

    return (
        query
        .order_by(models.ReturnTransaction.return_date.desc(), models.ReturnTransaction.id.desc())
        .all()
    )
