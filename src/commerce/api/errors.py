"""HTTP mapping for checkout errors."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from commerce.errors import (
    CheckoutConflict,
    CommerceError,
    CouponExhausted,
    CouponInvalid,
    InvalidSignature,
    InvalidTransition,
    ItemUnavailable,
    PaymentIntentFailed,
)

ERROR_STATUS_CODES = {
    ItemUnavailable: 409,
    CouponInvalid: 422,
    CouponExhausted: 409,
    CheckoutConflict: 409,
    PaymentIntentFailed: 502,
    InvalidSignature: 400,
    InvalidTransition: 409,
}


def status_code_for(exc: CommerceError) -> int:
    for error_cls, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_cls):
            return status_code
    return 400


async def commerce_error_handler(request: Request, exc: CommerceError) -> JSONResponse:  # noqa: ARG001
    return JSONResponse(status_code=status_code_for(exc), content=exc.to_dict())


def register_commerce_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CommerceError, commerce_error_handler)
