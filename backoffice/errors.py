"""
Domain errors raised by the ledger services.

They are HTTPExceptions so a service can raise them directly and the
transport layer reports the right status without translating anything.
Anything that is not one of these is an internal error.
"""

from fastapi import HTTPException, status


class LedgerError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "ledger_error"

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)

    def __str__(self) -> str:
        return str(self.detail)


class LedgerValidationError(LedgerError):
    """Missing or malformed input, rejected before any write."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class NotFoundError(LedgerError):
    """A referenced sale, product or return does not exist."""
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class InvariantViolationError(LedgerError):
    """The write would break a ledger invariant (over-return, overpayment...)."""
    status_code = status.HTTP_409_CONFLICT
    code = "invariant_violation"


class ResolutionError(LedgerError):
    """No user could be resolved, not even the default account."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "resolution_error"
