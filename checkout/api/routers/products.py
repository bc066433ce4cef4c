# checkout/api/routers/products.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from checkout.api.deps import get_principal
from checkout.api.errors import http_error
from checkout.data.database import get_db
from checkout.domain.exceptions import CheckoutError
from checkout.domain.principal import AuthenticatedPrincipal
from checkout.domain.schemas import DiscountIn, ProductOut
from checkout.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    try:
        return ProductService(db).get_product(product_id)
    except CheckoutError as e:
        raise http_error(e)


@router.put("/{product_id}/discount", response_model=ProductOut)
def set_discount(
    product_id: int,
    payload: DiscountIn,
    principal: AuthenticatedPrincipal = Depends(get_principal),
    db: Session = Depends(get_db),
):
    """
    Ustawia albo czysci rabat produktu (tylko admin).
    """
    try:
        return ProductService(db).set_discount(
            principal,
            product_id,
            kind=payload.kind,
            value=payload.value,
            start=payload.start,
            end=payload.end,
        )
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except CheckoutError as e:
        raise http_error(e)
