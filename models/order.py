from datetime import datetime
from enum import Enum
from typing import ClassVar, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class OrderStatus(str, Enum):
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    PAYMENT_PENDING = "payment_pending"
    PAYMENT_COMPLETED = "payment_completed"
    PAYMENT_FAILED = "payment_failed"
    PREPARING = "preparing"
    READY = "ready"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    DIGITAL_WALLET = "digital_wallet"


ALLOWED_TRANSITIONS: Dict[OrderStatus, List[OrderStatus]] = {
    OrderStatus.PENDING_APPROVAL: [OrderStatus.APPROVED, OrderStatus.REJECTED, OrderStatus.CANCELLED],
    OrderStatus.APPROVED: [OrderStatus.PAYMENT_PENDING, OrderStatus.CANCELLED],
    OrderStatus.PAYMENT_PENDING: [OrderStatus.PAYMENT_COMPLETED, OrderStatus.PAYMENT_FAILED, OrderStatus.CANCELLED],
    OrderStatus.PAYMENT_FAILED: [OrderStatus.APPROVED, OrderStatus.CANCELLED],
    OrderStatus.PAYMENT_COMPLETED: [OrderStatus.PREPARING, OrderStatus.CANCELLED],
    OrderStatus.PREPARING: [OrderStatus.READY, OrderStatus.CANCELLED],
    OrderStatus.READY: [OrderStatus.FULFILLED, OrderStatus.CANCELLED],
    OrderStatus.REJECTED: [],
    OrderStatus.FULFILLED: [],
    OrderStatus.CANCELLED: [],
}

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)

# Shopkeeper-driven progression once the order is paid
FULFILLMENT_STEPS: Dict[OrderStatus, OrderStatus] = {
    OrderStatus.PAYMENT_COMPLETED: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.READY: OrderStatus.FULFILLED,
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, [])


def is_valid_path(statuses: List[OrderStatus]) -> bool:
    """True when ``statuses`` starts at submission and only follows allowed edges."""
    if not statuses or statuses[0] != OrderStatus.PENDING_APPROVAL:
        return False
    return all(can_transition(a, b) for a, b in zip(statuses, statuses[1:]))


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class OrderItem(CamelModel):
    menu_item_id: str
    quantity: int = Field(ge=1)
    # price at time of order, never recomputed from the live menu
    price: float = Field(ge=0)
    notes: Optional[str] = None

    @property
    def line_total(self) -> float:
        return self.quantity * self.price


class StatusChange(CamelModel):
    status: OrderStatus
    at: datetime
    source: str = ""
    note: str = ""


class Order(CamelModel):
    __collection__: ClassVar[str] = "orders"
    IMMUTABLE_FIELDS: ClassVar[frozenset] = frozenset(
        {"id", "user_id", "shop_id", "items", "total_amount", "token_number", "created_at"}
    )

    id: str
    user_id: str
    shop_id: str
    items: List[OrderItem]
    total_amount: float
    status: OrderStatus = OrderStatus.PENDING_APPROVAL
    token_number: int = Field(ge=1, le=999)
    estimated_pickup_time: Optional[datetime] = None
    actual_pickup_time: Optional[datetime] = None
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[PaymentMethod] = None
    transaction_id: Optional[str] = None
    payment_error: Optional[str] = None
    rejection_reason: Optional[str] = None
    cancellation_reason: Optional[str] = None
    notes: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    review: Optional[str] = None
    status_history: List[StatusChange] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @field_validator("estimated_pickup_time", "actual_pickup_time", mode="before")
    @classmethod
    def _blank_time_is_unset(cls, value):
        # older records store an empty string before approval
        return value or None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
