import logging
from typing import Optional

from core.errors import PersistenceError
from core.store import RecordStore
from models.notification import Notification, NotificationType
from models.order import Order, OrderStatus

logger = logging.getLogger(__name__)

_MESSAGES = {
    OrderStatus.PENDING_APPROVAL: ("Order submitted", "Order #{token} is waiting for the shop to accept it."),
    OrderStatus.APPROVED: ("Order approved", "Order #{token} was approved. Please complete payment."),
    OrderStatus.REJECTED: ("Order rejected", "Order #{token} was rejected: {reason}"),
    OrderStatus.PAYMENT_PENDING: ("Payment processing", "Processing payment for order #{token}."),
    OrderStatus.PAYMENT_COMPLETED: ("Payment received", "Payment for order #{token} went through."),
    OrderStatus.PAYMENT_FAILED: ("Payment failed", "Payment for order #{token} failed. You can try again."),
    OrderStatus.PREPARING: ("Preparing your order", "Order #{token} is being prepared."),
    OrderStatus.READY: ("Ready for pickup", "Token #{token} is ready. Head to the counter."),
    OrderStatus.FULFILLED: ("Order picked up", "Enjoy your meal! Order #{token} is complete."),
    OrderStatus.CANCELLED: ("Order cancelled", "Order #{token} was cancelled."),
}


class Notifier:
    """Writes customer-facing notification records for order transitions."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def order_changed(self, order: Order) -> Optional[Notification]:
        title, template = _MESSAGES[order.status]
        message = template.format(token=order.token_number, reason=order.rejection_reason or "no reason given")
        kind = NotificationType.TOKEN_READY if order.status == OrderStatus.READY else NotificationType.ORDER_UPDATE
        data = {
            "userId": order.user_id,
            "title": title,
            "message": message,
            "type": kind.value,
            "isRead": False,
            "metadata": {"orderId": order.id, "status": order.status.value, "tokenNumber": order.token_number},
        }
        # The order write already happened; a lost notification must not undo it.
        try:
            result = await self.store.create(Notification.__collection__, data)
        except PersistenceError:
            logger.exception(f"Failed to store notification for order {order.id}")
            return None
        return Notification.model_validate(result.record)

    async def for_user(self, user_id: str, unread_only: bool = False) -> list:
        filters = {"userId": user_id}
        if unread_only:
            filters["isRead"] = False
        records = await self.store.find_many(Notification.__collection__, filters)
        return [Notification.model_validate(r) for r in records]
