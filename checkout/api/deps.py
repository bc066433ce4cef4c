# checkout/api/deps.py
"""
Wspolne zaleznosci FastAPI.

Principal czytany z naglowka X-User-Id (wydawanie tokenow jest poza tym
serwisem). Bramka, lock i powiadomienia to osobne zaleznosci, zeby testy
mogly je podmienic przez app.dependency_overrides.
"""
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from checkout.data.database import get_db
from checkout.domain.principal import AuthenticatedPrincipal
from checkout.services.lock_service import LockService
from checkout.services.notification_service import NotificationService
from checkout.services.payment_gateway import PaystackClient
from checkout.services.user_service import UserService


def get_optional_principal(
    x_user_id: int | None = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> AuthenticatedPrincipal | None:
    if x_user_id is None:
        return None
    principal = UserService(db).principal_for(x_user_id)
    if principal is None:
        raise HTTPException(status_code=401, detail="Unknown user")
    return principal


def get_principal(
    principal: AuthenticatedPrincipal | None = Depends(get_optional_principal),
) -> AuthenticatedPrincipal:
    if principal is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return principal


def get_guest_cart_id(
    x_guest_cart_id: int | None = Header(None, alias="X-Guest-Cart-Id"),
) -> int | None:
    return x_guest_cart_id


def get_gateway() -> PaystackClient:
    return PaystackClient()


def get_lock_service() -> LockService:
    return LockService()


def get_notification_service() -> NotificationService:
    return NotificationService()
