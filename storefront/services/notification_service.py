# storefront/services/notification_service.py
from decimal import Decimal

from kombu.exceptions import OperationalError

from storefront.celery_worker import celery_app
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """
    Order notifications, processed asynchronously by Celery.
    """

    @staticmethod
    def send_order_notification(user_id: int, order_id: int, total_amount: Decimal):
        """
        Queues the "order placed" notification. The order is already committed,
        so a broker outage is logged instead of failing the request.
        """
        try:
            send_order_notification_task.delay(user_id, order_id, str(total_amount))
        except OperationalError as e:
            logger.error(f"Could not queue notification for order {order_id}: {e}")


@celery_app.task(name="storefront.services.notification_service.send_order_notification_task")
def send_order_notification_task(user_id: int, order_id: int, total_amount: str):
    """
    Celery task. Email delivery lives in a separate service, here we only log
    the event for the order/analytics consumers.
    """
    logger.info(f"[NOTIFICATION] User {user_id}: order {order_id} placed, total {total_amount}")

    return {"user_id": user_id, "order_id": order_id, "status": "sent"}
