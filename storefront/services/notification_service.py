# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Order notifications.
    Uses Celery so checkout does not wait for delivery.
    """

    @staticmethod
    def send_order_notification(order_number: str, email: str):
        send_order_confirmation_task.delay(order_number, email)


@celery_app.task(name="storefront.services.notification_service.send_order_confirmation_task")
def send_order_confirmation_task(order_number: str, email: str):
    """
    Celery task. Only logs for now, mail delivery is not wired in.
    """
    logger.info(f"[NOTIFICATION] {email}: order {order_number} received")

    return {"order_number": order_number, "email": email, "status": "sent"}
