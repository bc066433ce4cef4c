# checkout/services/payment_service.py
import json
import uuid
from dataclasses import dataclass

from sqlalchemy.orm import Session

from checkout.data.models.order import OrderModel
from checkout.domain.enums import OrderStatus, PaymentStatus
from checkout.domain.exceptions import PaymentGatewayError
from checkout.domain.pricing import to_minor_units
from checkout.repos.order_repo import OrderRepo
from checkout.services.lock_service import LockService
from checkout.services.notification_service import NotificationService
from checkout.services.payment_gateway import PaystackClient, Verification
from checkout.utils.settings import PAYMENT_CURRENCY, WEBHOOK_LOCK_TTL_SECONDS
from checkout.utils.logging import get_logger

logger = get_logger(__name__)

CHARGE_SUCCESS_EVENT = "charge.success"
SIGNATURE_LOG_PREFIX = 8


def _signature_prefix(signature: str | None) -> str | None:
    #do logow tylko poczatek podpisu
    if not signature:
        return signature
    return signature[:SIGNATURE_LOG_PREFIX] + "..."


@dataclass(frozen=True)
class WebhookAck:
    status_code: int
    message: str


class PaymentReconciliationService:
    """
    Obsluga webhooka bramki platnosci.

    Webhook to tylko sygnal: stan platnosci zawsze potwierdzamy osobnym
    zapytaniem verify do bramki. Kazda galaz commituje swoja zmiane i zwraca
    WebhookAck, wyjatki nie wychodza poza handle_notification.

    Idempotencja:
    - lock redis na referencje (jeden webhook naraz dla zamowienia)
    - SELECT ... FOR UPDATE na zamowieniu
    - UPDATE ... WHERE payment_status <> 'paid'
    """

    def __init__(
        self,
        db: Session,
        gateway: PaystackClient | None = None,
        lock_service: LockService | None = None,
        notification_service: NotificationService | None = None,
        currency: str = PAYMENT_CURRENCY,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.gateway = gateway or PaystackClient()
        self.lock_service = lock_service or LockService()
        self.notification_service = notification_service or NotificationService()
        self.currency = currency

    def handle_notification(self, raw_payload: bytes, signature: str | None) -> WebhookAck:
        try:
            return self._handle(raw_payload, signature)
        except Exception:
            logger.exception("Payment webhook: unexpected error while processing notification")
            try:
                self.repo.rollback()
            except Exception:
                logger.exception("Payment webhook: rollback failed")
            return WebhookAck(500, "Internal server error processing webhook")

    def _handle(self, raw_payload: bytes, signature: str | None) -> WebhookAck:
        #1. podpis - przed jakimkolwiek odczytem z bazy
        if not self.gateway.is_valid_signature(raw_payload, signature):
            logger.warning(
                f"Payment webhook: invalid signature received ({len(raw_payload)} bytes, "
                f"signature prefix={_signature_prefix(signature)!r})"
            )
            return WebhookAck(401, "Invalid signature")

        #2. payload
        try:
            event = json.loads(raw_payload)
        except ValueError:
            logger.warning("Payment webhook: malformed JSON payload")
            return WebhookAck(400, "Malformed payload")

        if not isinstance(event, dict):
            return WebhookAck(400, "Malformed payload")

        event_type = event.get("event")
        if event_type != CHARGE_SUCCESS_EVENT:
            logger.info(f"Payment webhook: event type {event_type!r} not handled")
            return WebhookAck(200, "Event type not handled")

        data = event.get("data")
        reference = data.get("reference") if isinstance(data, dict) else None
        if not isinstance(reference, str) or not reference:
            logger.warning("Payment webhook: charge.success without a reference")
            return WebhookAck(400, "Malformed payload")

        logger.info(f"Payment webhook: {event_type} received for reference {reference}")

        token = uuid.uuid4().hex
        if not self.lock_service.acquire_payment_lock(reference, token, WEBHOOK_LOCK_TTL_SECONDS):
            logger.info(f"Payment webhook: reference {reference} is already being processed")
            return WebhookAck(409, "Notification for this order is already being processed")

        try:
            return self._reconcile(reference)
        finally:
            try:
                self.lock_service.release_payment_lock(reference, token)
            except Exception as e:
                #lock i tak wygasnie po TTL
                logger.warning(f"Payment webhook: failed to release lock for {reference}: {e}")

    def _reconcile(self, reference: str) -> WebhookAck:
        #3. zamowienie po order_number
        order = self.repo.get_order_by_number_for_update(reference)
        if order is None:
            self.repo.rollback()
            logger.error(f"Payment webhook: order not found for reference {reference}")
            return WebhookAck(404, "Order not found")

        #4. duplikat
        if order.payment_status == PaymentStatus.PAID.value:
            self.repo.commit()
            logger.info(f"Payment webhook: order {reference} already marked as paid, ignoring duplicate")
            return WebhookAck(200, "Order already paid")

        #5. niezalezna weryfikacja w bramce
        verification = self._verify(reference)
        if verification is None or not verification.success:
            logger.error(
                f"Payment webhook: verification failed for reference {reference}: "
                f"{verification.raw if verification else 'no response'}"
            )
            applied = self._transition(
                order,
                PaymentStatus.FAILED,
                OrderStatus.CANCELLED,
                payment_details={
                    "reason": "Payment verification failed via webhook.",
                    "verification": verification.raw if verification else None,
                },
            )
            if not applied:
                return WebhookAck(200, "Order already paid")
            return WebhookAck(400, "Payment verification failed")

        #6. kwota i waluta
        expected_minor = to_minor_units(order.order_total)
        if verification.amount_minor != expected_minor or verification.currency != self.currency:
            logger.error(
                f"Payment webhook: amount or currency mismatch for order {reference}. "
                f"Expected {expected_minor} {self.currency}, got {verification.amount_minor} "
                f"{verification.currency} (verified)."
            )
            applied = self._transition(
                order,
                PaymentStatus.AMOUNT_MISMATCH,
                OrderStatus.CANCELLED,
                payment_details={
                    "reason": "Payment amount/currency mismatch via webhook.",
                    "expected_amount": expected_minor,
                    "expected_currency": self.currency,
                    "verification": verification.raw,
                },
            )
            if not applied:
                return WebhookAck(200, "Order already paid")
            return WebhookAck(400, "Amount or currency mismatch")

        #7. oplacone
        user_id = order.customer.user_id
        applied = self._transition(
            order,
            PaymentStatus.PAID,
            OrderStatus.PROCESSING,
            payment_gateway_transaction_id=verification.gateway_transaction_id,
            payment_details=verification.raw,
        )
        if not applied:
            logger.info(f"Payment webhook: order {reference} was marked paid concurrently")
            return WebhookAck(200, "Order already paid")

        logger.info(f"Payment webhook: payment successful for order {reference}, status updated to paid")
        self.notification_service.send_payment_confirmation(user_id, reference)
        return WebhookAck(200, "Webhook processed successfully")

    def _verify(self, reference: str) -> Verification | None:
        try:
            return self.gateway.verify_by_reference(reference)
        except PaymentGatewayError as e:
            logger.error(f"Payment webhook: gateway verification error for {reference}: {e}")
            return None

    def _transition(
        self,
        order: OrderModel,
        payment_status: PaymentStatus,
        order_status: OrderStatus,
        **extra,
    ) -> bool:
        rowcount = self.repo.transition_unless_paid(
            order.id,
            {
                "payment_status": payment_status.value,
                "order_status": order_status.value,
                **extra,
            },
        )
        self.repo.commit()
        return rowcount == 1
