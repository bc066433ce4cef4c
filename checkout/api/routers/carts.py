# checkout/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from checkout.api.deps import get_guest_cart_id, get_optional_principal
from checkout.api.errors import http_error
from checkout.data.database import get_db
from checkout.domain.exceptions import CheckoutError
from checkout.domain.principal import AuthenticatedPrincipal
from checkout.domain.schemas import CartItemIn, CartItemUpdateIn, CartOut
from checkout.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


def get_service(db: Session):
    return CartService(db)


@router.get("/", response_model=CartOut)
def get_cart(
    response: Response,
    principal: AuthenticatedPrincipal | None = Depends(get_optional_principal),
    guest_cart_id: int | None = Depends(get_guest_cart_id),
    db: Session = Depends(get_db),
):
    """
    Zwraca koszyk zalogowanego uzytkownika albo goscia.
    Jesli koszyka nie bylo, tworzy nowy (201).
    """
    cart, created = get_service(db).get_or_create_cart(principal, guest_cart_id)
    if created:
        response.status_code = 201
    return cart


@router.post("/items", response_model=CartOut)
def add_item(
    payload: CartItemIn,
    principal: AuthenticatedPrincipal | None = Depends(get_optional_principal),
    guest_cart_id: int | None = Depends(get_guest_cart_id),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.add_item(principal, guest_cart_id, payload.product_id, payload.quantity)
    except CheckoutError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.patch("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: int,
    payload: CartItemUpdateIn,
    principal: AuthenticatedPrincipal | None = Depends(get_optional_principal),
    guest_cart_id: int | None = Depends(get_guest_cart_id),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.update_item(principal, guest_cart_id, item_id, payload.quantity)
    except CheckoutError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.delete("/items/{item_id}")
def remove_item(
    item_id: int,
    principal: AuthenticatedPrincipal | None = Depends(get_optional_principal),
    guest_cart_id: int | None = Depends(get_guest_cart_id),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        cart = svc.remove_item(principal, guest_cart_id, item_id)
    except CheckoutError as e:
        raise http_error(e)

    if cart is None:
        return {"message": "Item removed. Cart is now empty and has been deleted."}
    return {"message": "Item removed from cart.", "cart": CartOut(**cart)}


@router.delete("/", status_code=204)
def clear_cart(
    principal: AuthenticatedPrincipal | None = Depends(get_optional_principal),
    guest_cart_id: int | None = Depends(get_guest_cart_id),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        svc.clear(principal, guest_cart_id)
    except CheckoutError as e:
        raise http_error(e)
    return Response(status_code=204)
