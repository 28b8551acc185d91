from sqlalchemy import func
from sqlalchemy.orm import Session

from backoffice.users.models import User


def get_user(db: Session, user_id: str):
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_username(db: Session, username: str):
    # Case-insensitive: staff references come from forms and receipts
    return (
        db.query(User)
        .filter(func.lower(User.username) == username.strip().lower())
        .first()
    )
