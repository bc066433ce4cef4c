# checkout/services/notification_service.py
from checkout.celery_worker import celery_app
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Wysylanie powiadomien przez Celery.
    Best-effort: niedostepny broker nie moze cofnac zamowienia ani platnosci.
    """

    @staticmethod
    def send_order_notification(user_id: int, order_number: str):
        try:
            send_order_notification_task.delay(user_id, order_number)
        except Exception as e:
            logger.warning(f"Could not queue order notification for {order_number}: {e}")

    @staticmethod
    def send_payment_confirmation(user_id: int, order_number: str):
        try:
            send_payment_confirmation_task.delay(user_id, order_number)
        except Exception as e:
            logger.warning(f"Could not queue payment confirmation for {order_number}: {e}")


@celery_app.task(name="checkout.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_number: str):
    #tu bylby email / SMS, na razie log
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_number} has been placed")
    return {"user_id": user_id, "order_number": order_number, "status": "sent"}


@celery_app.task(name="checkout.services.notification_service.send_payment_confirmation_task")
def send_payment_confirmation_task(user_id: int, order_number: str):
    logger.info(f"[NOTIFICATION] User {user_id}: payment for order {order_number} confirmed")
    return {"user_id": user_id, "order_number": order_number, "status": "sent"}
