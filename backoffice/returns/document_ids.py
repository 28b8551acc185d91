from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from backoffice.config import business_today
from backoffice.returns.models import ReturnTransaction


RETURN_ID_PREFIX = "RET"
SEQUENCE_WIDTH = 4


def return_id_prefix(today: date) -> str:
    return f"{RETURN_ID_PREFIX}-{today:%y%m%d}-"


def generate_return_id(db: Session, today: Optional[date] = None) -> str:
    """
    Next ``RET-YYMMDD-NNNN`` id for the day.

    Reads the greatest id with today's prefix and adds one, so it assumes a
    single writer per day: two concurrent calls can return the same id and
    the second insert then fails on the primary key.
    """
    prefix = return_id_prefix(today or business_today())

    latest = (
        db.query(ReturnTransaction.id)
        .filter(ReturnTransaction.id.like(f"{prefix}%"))
        .order_by(ReturnTransaction.id.desc())
        .first()
    )

    next_count = 1
    if latest:
        last_part = latest[0].rsplit("-", 1)[-1]
        if last_part.isdigit():
            next_count = int(last_part) + 1

    return f"{prefix}{next_count:0{SEQUENCE_WIDTH}d}"
