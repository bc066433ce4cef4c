# checkout/api/routers/orders.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from checkout.api.deps import get_gateway, get_notification_service, get_principal
from checkout.api.errors import http_error
from checkout.data.database import get_db
from checkout.domain.exceptions import CheckoutError
from checkout.domain.principal import AuthenticatedPrincipal
from checkout.domain.schemas import FulfillmentUpdateIn, OrderOut, PlaceOrderIn, PlaceOrderOut
from checkout.services.notification_service import NotificationService
from checkout.services.order_service import OrderService
from checkout.services.payment_gateway import PaystackClient

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(
    db: Session = Depends(get_db),
    gateway: PaystackClient = Depends(get_gateway),
    notification_service: NotificationService = Depends(get_notification_service),
) -> OrderService:
    return OrderService(db, gateway=gateway, notification_service=notification_service)


@router.post("/", response_model=PlaceOrderOut, status_code=201)
def place_order(
    payload: PlaceOrderIn,
    principal: AuthenticatedPrincipal = Depends(get_principal),
    svc: OrderService = Depends(get_service),
):
    """
    Tworzy zamówienie z aktywnego koszyka zalogowanego uzytkownika.
    Dla platnosci innej niz Cash on Delivery zwraca authorization_url bramki.
    """
    try:
        placed = svc.place_order(
            principal,
            delivery_address_id=payload.delivery_address_id,
            delivery_option_id=payload.delivery_option_id,
            payment_method=payload.payment_method,
            notes=payload.notes,
        )
    except CheckoutError as e:
        raise http_error(e)

    return PlaceOrderOut(
        message=placed.message,
        data=OrderOut.model_validate(placed.order),
        authorization_url=placed.authorization_url,
    )


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    principal: AuthenticatedPrincipal = Depends(get_principal),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.get_order(principal, order_id)
    except CheckoutError as e:
        raise http_error(e)


@router.patch("/{order_id}", response_model=OrderOut)
def update_order(
    order_id: int,
    payload: FulfillmentUpdateIn,
    principal: AuthenticatedPrincipal = Depends(get_principal),
    svc: OrderService = Depends(get_service),
):
    try:
        return svc.update_fulfillment(
            principal,
            order_id,
            order_status=payload.order_status,
            delivery_tracking_number=payload.delivery_tracking_number,
            delivery_service=payload.delivery_service,
        )
    except CheckoutError as e:
        raise http_error(e)


@router.delete("/{order_id}")
def delete_order(
    order_id: int,
    principal: AuthenticatedPrincipal = Depends(get_principal),
    svc: OrderService = Depends(get_service),
):
    """Tylko admin. Pozycje i snapshoty adresu usuwane razem z zamowieniem."""
    try:
        svc.delete_order(principal, order_id)
    except CheckoutError as e:
        raise http_error(e)
    return {"message": "Order deleted successfully."}
