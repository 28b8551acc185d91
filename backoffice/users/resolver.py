from typing import Literal, Optional

from loguru import logger
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backoffice.errors import ResolutionError
from backoffice.users import crud as user_crud


class StaffResolution(BaseModel):
    """Outcome of resolving a loose staff reference.

    ``source`` tells how the user was found; ``None`` means unresolved.
    """

    reference: Optional[str] = None
    user_id: Optional[str] = None
    source: Optional[Literal["id", "username", "default"]] = None

    @property
    def resolved(self) -> bool:
        return self.user_id is not None


def resolve_staff(db: Session, reference: Optional[str], default_account: str) -> StaffResolution:
    """
    Resolve a staff reference to a canonical user id.

    Lookup order: exact id, case-insensitive username, then the
    configured default account. Read-only.
    """
    reference = str(reference).strip() if reference is not None else None

    if reference:
        user = user_crud.get_user(db, reference)
        if user:
            return StaffResolution(reference=reference, user_id=user.id, source="id")

        user = user_crud.get_user_by_username(db, reference)
        if user:
            return StaffResolution(reference=reference, user_id=user.id, source="username")

    default_user = user_crud.get_user_by_username(db, default_account)
    if default_user:
        logger.warning(
            f"Staff reference {reference!r} did not resolve, "
            f"falling back to default account '{default_account}'"
        )
        return StaffResolution(reference=reference, user_id=default_user.id, source="default")

    logger.error(f"Staff reference {reference!r} unresolved and default account '{default_account}' is missing")
    return StaffResolution(reference=reference)


def require_staff_id(db: Session, reference: Optional[str], default_account: str) -> str:
    resolution = resolve_staff(db, reference, default_account)
    if not resolution.resolved:
        raise ResolutionError("Could not resolve staff user")
    return resolution.user_id
