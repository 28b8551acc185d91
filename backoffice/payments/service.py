from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from loguru import logger
from sqlalchemy.orm import Session, joinedload

from backoffice.errors import (
    InvariantViolationError,
    LedgerValidationError,
    NotFoundError,
)
from backoffice.payments import models, schemas
from backoffice.sales import models as sales_models
from backoffice.users.resolver import require_staff_id


# Display order and labels used in payment summaries; return credit is not listed
METHOD_LABELS = (
    ("Cash", "Cash"),
    ("Cheque", "Cheque"),
    ("BankTransfer", "Bank Transfer"),
)


# =========================
# Helper: payment summary
# =========================
def build_payment_summary(payments: Iterable[Tuple[str, float]], outstanding_balance: float) -> str:
    """
    Render the human readable summary stored on a sale.

    >>> build_payment_summary([("Cash", 300), ("Cheque", 200)], 0)
    'Split (Cash (300.00) + Cheque (200.00))'
    >>> build_payment_summary([("Cash", 300)], 200)
    'Partial (Cash (300.00)) - Outstanding: 200.00'
    """
    by_method = {}
    for method, amount in payments:
        if not amount:
            continue
        by_method[method] = by_method.get(method, 0) + amount

    methods_used = [
        f"{label} ({by_method[method]:.2f})"
        for method, label in METHOD_LABELS
        if by_method.get(method)
    ]

    if len(methods_used) > 1:
        summary = f"Split ({' + '.join(methods_used)})"
    elif methods_used:
        summary = methods_used[0]
    else:
        summary = "N/A"

    if outstanding_balance > 0:
        summary = f"Partial ({summary}) - Outstanding: {outstanding_balance:.2f}"

    return summary


def payment_history(sale: sales_models.Sale) -> List[Tuple[str, float]]:
    """Every amount ever paid against a sale: till amounts first, then Payment rows."""
    history = []
    if sale.paid_amount_cash:
        history.append(("Cash", sale.paid_amount_cash))
    if sale.paid_amount_cheque:
        history.append(("Cheque", sale.paid_amount_cheque))
    if sale.paid_amount_bank_transfer:
        history.append(("BankTransfer", sale.paid_amount_bank_transfer))

    for payment in sale.payments:
        history.append((payment.method, payment.amount))

    return history


# -------------------------
# Internal: add a payment row (no commit)
# -------------------------
def add_payment_row(
    db: Session,
    sale_id: str,
    amount: float,
    method: str,
    staff_id: Optional[str],
    date: Optional[datetime] = None,
    notes: Optional[str] = None,
    details: Optional[schemas.PaymentDetails] = None,
) -> models.Payment:
    payment = models.Payment(
        sale_id=sale_id,
        amount=amount,
        method=method,
        date=date or datetime.utcnow(),
        notes=notes,
        staff_id=staff_id,
    )

    if details:
        if details.number or details.bank or details.date:
            payment.cheque_number = details.number
            payment.cheque_bank = details.bank
            payment.cheque_date = details.date
            payment.cheque_amount = details.amount
        if details.bank_name or details.reference_number:
            payment.bank_name = details.bank_name
            payment.reference_number = details.reference_number
            payment.bank_amount = details.amount

    db.add(payment)
    db.flush()
    return payment


# -------------------------
# Record Payment for Sale
# -------------------------
def record_payment(
    db: Session,
    sale_id: str,
    payment: schemas.PaymentCreate,
    default_account: str,
) -> sales_models.Sale:
    if payment.amount is None or payment.amount <= 0:
        raise LedgerValidationError("Invalid payment amount")

    sale = (
        db.query(sales_models.Sale)
        .options(joinedload(sales_models.Sale.payments))
        .filter(sales_models.Sale.id == sale_id)
        .first()
    )
    if not sale:
        raise NotFoundError("Sale not found")

    if sale.is_cancelled:
        raise InvariantViolationError("Cannot record a payment on a cancelled sale")

    staff_id = require_staff_id(db, payment.staff_id, default_account)

    remaining_balance = round(sale.total_amount - sale.total_amount_paid, 2)

    # A payment can never push the balance below zero
    if round(payment.amount, 2) > remaining_balance:
        logger.warning(f"Rejected payment of {payment.amount} on sale {sale_id}: balance due is {remaining_balance}")
        raise InvariantViolationError(f"Payment exceeds balance due ({remaining_balance:.2f})")

    total_amount_paid = round(sale.total_amount_paid + payment.amount, 2)
    new_outstanding_balance = max(round(sale.total_amount - total_amount_paid, 2), 0)

    summary = build_payment_summary(
        payment_history(sale) + [(payment.method, payment.amount)],
        new_outstanding_balance,
    )

    try:
        add_payment_row(
            db,
            sale_id=sale.id,
            amount=payment.amount,
            method=payment.method,
            staff_id=staff_id,
            date=payment.date,
            notes=payment.notes,
            details=payment.details,
        )

        sale.total_amount_paid = total_amount_paid
        sale.outstanding_balance = new_outstanding_balance
        sale.payment_summary = summary

        db.commit()
        db.refresh(sale)

    except Exception:
        db.rollback()
        raise

    logger.info(f"Payment of {payment.amount:.2f} ({payment.method}) recorded on sale {sale.id}; outstanding {new_outstanding_balance:.2f}")
    return sale


# -------------------------
# List payments by sale
# -------------------------
def list_payments_by_sale(db: Session, sale_id: str):
    sale = db.query(sales_models.Sale).filter(sales_models.Sale.id == sale_id).first()
    if not sale:
        raise NotFoundError("Sale not found")

    return (
        db.query(models.Payment)
        .filter(models.Payment.sale_id == sale_id)
        .order_by(models.Payment.date.desc())
        .all()
    )
