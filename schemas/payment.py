from typing import Optional

from pydantic import BaseModel, EmailStr

from models.order import Order, PaymentMethod


class PaymentRequest(BaseModel):
    customer_email: EmailStr
    customer_name: str
    payment_method: PaymentMethod = PaymentMethod.CARD
    currency: Optional[str] = None


class PaymentDetails(BaseModel):
    amount: float
    currency: str
    order_id: str
    customer_email: str
    customer_name: str


class PaymentResult(BaseModel):
    success: bool
    transaction_id: Optional[str] = None
    message: str
    error: Optional[str] = None


class PaymentOut(BaseModel):
    order: Order
    payment: Optional[PaymentResult] = None
