"""Maps domain exceptions onto HTTP responses"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from credshield_gateway.domain.exceptions import (
    ActiveLoanExists,
    AlreadyHasCollateral,
    BatchTooLarge,
    CollateralLocked,
    CreditLimitExceeded,
    DataUnavailable,
    DomainException,
    InsufficientLenderBalance,
    InsufficientLiquidity,
    InsufficientYieldReserve,
    InvalidAmount,
    InvalidScoreRange,
    LedgerDeliveryError,
    LoanNotActive,
    LoanNotFound,
    NoActiveCollateral,
    NotBorrower,
    ProfileNotFound,
    PurchaseCompleted,
    PurchaseNotFound,
    ReportGenerationError,
    Unauthorized,
)

STATUS_BY_EXCEPTION = {
    ProfileNotFound: 404,
    LoanNotFound: 404,
    PurchaseNotFound: 404,
    NoActiveCollateral: 404,
    Unauthorized: 403,
    NotBorrower: 403,
    ActiveLoanExists: 409,
    AlreadyHasCollateral: 409,
    LoanNotActive: 409,
    CollateralLocked: 409,
    PurchaseCompleted: 409,
    InsufficientLiquidity: 409,
    InsufficientYieldReserve: 409,
    InsufficientLenderBalance: 409,
    InvalidAmount: 422,
    InvalidScoreRange: 422,
    CreditLimitExceeded: 422,
    BatchTooLarge: 422,
    DataUnavailable: 503,
    ReportGenerationError: 503,
    LedgerDeliveryError: 502,
}


def status_for(exc: DomainException) -> int:
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_EXCEPTION:
            return STATUS_BY_EXCEPTION[cls]
    return 400


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status = status_for(exc)
    request_id = getattr(request.state, "request_id", "unknown")
    log = logging.warning if status < 500 else logging.error
    log(f"{type(exc).__name__}: {exc}", extra={"request_id": request_id, "path": request.url.path})
    return JSONResponse(status_code=status, content={"error": type(exc).__name__, "detail": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
