from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Dict, Optional

from models.order import CamelModel


class NotificationType(str, Enum):
    ORDER_UPDATE = "order_update"
    TOKEN_READY = "token_ready"
    PROMOTIONAL = "promotional"
    SYSTEM = "system"


class Notification(CamelModel):
    __collection__: ClassVar[str] = "notifications"

    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType = NotificationType.ORDER_UPDATE
    is_read: bool = False
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
