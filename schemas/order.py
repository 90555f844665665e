from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from models.order import PaymentMethod


class OrderItemIn(BaseModel):
    menu_item_id: str
    quantity: int = Field(ge=1)
    # cart price; looked up from the menu when omitted
    price: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class OrderCreate(BaseModel):
    user_id: str
    shop_id: str
    items: List[OrderItemIn]
    notes: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None


class RejectionReason(str, Enum):
    FOOD_UNAVAILABLE = "food_unavailable"
    TIME_UP = "time_up"
    INGREDIENTS_OUT = "ingredients_out"
    EQUIPMENT_ISSUE = "equipment_issue"
    STAFF_SHORTAGE = "staff_shortage"
    HIGH_DEMAND = "high_demand"
    OTHER = "other"


REJECTION_LABELS = {
    RejectionReason.FOOD_UNAVAILABLE: "Food Unavailable",
    RejectionReason.TIME_UP: "Time Up - Kitchen Closed",
    RejectionReason.INGREDIENTS_OUT: "Out of Ingredients",
    RejectionReason.EQUIPMENT_ISSUE: "Equipment Issue",
    RejectionReason.STAFF_SHORTAGE: "Staff Shortage",
    RejectionReason.HIGH_DEMAND: "Too Many Orders",
}

PREPARATION_TIMES = (5, 10, 15, 20, 25, 30, 45, 60)
MAX_CUSTOM_REASON_LENGTH = 100


class ApprovalRequest(BaseModel):
    # Checked against PREPARATION_TIMES by the controller so a bad value is a
    # lifecycle validation failure rather than a request parsing error.
    preparation_time: int
    shopkeeper_id: Optional[str] = None


class RejectionRequest(BaseModel):
    reason: Optional[str] = None
    custom_reason: Optional[str] = None
    shopkeeper_id: Optional[str] = None


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class FailureOut(BaseModel):
    code: str
    message: str
    order_id: Optional[str] = None
