"""HTTP error helpers for FastAPI routers."""

from typing import NoReturn

from fastapi import HTTPException, status

from recon.services.match_lifecycle import ReconciliationErrorCode

_STATUS_BY_ERROR: dict[ReconciliationErrorCode, int] = {
    ReconciliationErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ReconciliationErrorCode.ALREADY_MATCHED: status.HTTP_409_CONFLICT,
    ReconciliationErrorCode.INVALID_SOURCE: status.HTTP_400_BAD_REQUEST,
    ReconciliationErrorCode.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ReconciliationErrorCode.PERSISTENCE_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def raise_not_found(resource_name: str, *, cause: Exception | None = None) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{resource_name} not found",
    ) from cause


def raise_for_reconciliation_error(
    code: ReconciliationErrorCode | None,
    message: str | None,
) -> NoReturn:
    """Translate a failed lifecycle result into the matching HTTP error."""
    status_code = (
        _STATUS_BY_ERROR.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        if code
        else status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    raise HTTPException(
        status_code=status_code,
        detail={"error": code.value if code else None, "message": message},
        headers=headers,
    )
