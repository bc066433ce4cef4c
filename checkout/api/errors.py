# checkout/api/errors.py
from fastapi import HTTPException

from checkout.domain.exceptions import (
    BelowMinimumOrder,
    CartAccessDenied,
    CartLineNotFound,
    CartNotFound,
    CheckoutError,
    CustomerProfileMissing,
    EmptyCart,
    InvalidDiscount,
    InvalidSelection,
    OrderAccessDenied,
    OrderNotFound,
    OrderPlacementFailed,
    PaymentGatewayError,
    ProductNotFound,
    ProductUnavailable,
)

#kolejnosc ma znaczenie tylko dla podklas, tu wszystkie sa rozlaczne
STATUS_CODES = {
    CustomerProfileMissing: 400,
    EmptyCart: 400,
    InvalidSelection: 422,
    ProductUnavailable: 422,
    BelowMinimumOrder: 422,
    InvalidDiscount: 422,
    OrderPlacementFailed: 500,
    PaymentGatewayError: 502,
    OrderNotFound: 404,
    CartNotFound: 404,
    CartLineNotFound: 404,
    ProductNotFound: 404,
    OrderAccessDenied: 403,
    CartAccessDenied: 403,
}


def http_error(exc: CheckoutError) -> HTTPException:
    status_code = STATUS_CODES.get(type(exc), 400)
    detail = {"message": exc.message}

    product_id = getattr(exc, "product_id", None)
    if product_id is not None:
        detail["product_id"] = product_id

    #przyczyna bledu 500 tylko w logach
    if status_code < 500:
        detail["details"] = exc.details
    return HTTPException(status_code=status_code, detail=detail)
