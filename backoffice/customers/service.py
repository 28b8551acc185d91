from sqlalchemy import func
from sqlalchemy.orm import Session

from backoffice.returns.models import ReturnTransaction
from backoffice.sales.models import Sale


def get_available_credit(db: Session, customer_id: str) -> float:
    """
    Store credit a customer can still spend: every refund credited by a
    return minus the credit already consumed on sales. Nothing is stored;
    it is recomputed on each call.
    """
    total_refunds = (
        db.query(func.coalesce(func.sum(ReturnTransaction.refund_amount), 0))
        .filter(ReturnTransaction.customer_id == customer_id)
        .scalar()
    )

    total_credit_used = (
        db.query(func.coalesce(func.sum(Sale.credit_used), 0))
        .filter(Sale.customer_id == customer_id)
        .scalar()
    )

    return round(float(total_refunds or 0) - float(total_credit_used or 0), 2)
