from datetime import datetime, timezone

from fastapi import Request, status
from fastapi.responses import JSONResponse

from deltamatrix.core.exceptions import (
    BusinessRuleError,
    DerivedScoreError,
    DomainError,
    DraftCommitError,
    ImportFormatError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)


ERROR_STATUS_MAP: dict[type[DomainError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ImportFormatError: status.HTTP_400_BAD_REQUEST,
    BusinessRuleError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    DerivedScoreError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    PersistenceError: status.HTTP_502_BAD_GATEWAY,
    DraftCommitError: status.HTTP_502_BAD_GATEWAY,
}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = ERROR_STATUS_MAP.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)

    return JSONResponse(
        status_code=status_code,
        content={
            "data": None,
            "meta": {
                "request_id": getattr(request.state, "request_id", None),
                "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            },
            "errors": [
                {
                    "code": exc.code,
                    "message": exc.message,
                    "details": exc.details,
                }
            ],
        },
    )
