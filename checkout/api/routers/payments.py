# checkout/api/routers/payments.py
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from checkout.api.deps import get_gateway, get_lock_service, get_notification_service
from checkout.data.database import get_db
from checkout.services.lock_service import LockService
from checkout.services.notification_service import NotificationService
from checkout.services.payment_gateway import PaystackClient
from checkout.services.payment_service import PaymentReconciliationService

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    db: Session = Depends(get_db),
    gateway: PaystackClient = Depends(get_gateway),
    lock_service: LockService = Depends(get_lock_service),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """
    Webhook bramki platnosci. Podpis liczony z surowego body,
    dlatego nie parsujemy go przez pydantic.
    Kod odpowiedzi decyduje o tym czy bramka ponowi wysylke.
    """
    raw_payload = await request.body()
    signature = request.headers.get("X-Signature") or request.headers.get("X-Paystack-Signature")

    svc = PaymentReconciliationService(
        db,
        gateway=gateway,
        lock_service=lock_service,
        notification_service=notification_service,
    )
    #sesja i requests sa synchroniczne
    ack = await run_in_threadpool(svc.handle_notification, raw_payload, signature)
    return JSONResponse({"message": ack.message}, status_code=ack.status_code)
