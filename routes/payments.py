from fastapi import APIRouter, Depends

from core.deps import get_controller, unwrap
from schemas.payment import PaymentOut, PaymentRequest
from services.order_lifecycle import OrderLifecycleController

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/{order_id}", response_model=PaymentOut)
async def pay_for_order(
    order_id: str, data: PaymentRequest, controller: OrderLifecycleController = Depends(get_controller)
):
    """Run a payment attempt. A declined payment is a normal response with the order in payment_failed."""
    result = await controller.initiate_payment(
        order_id,
        customer_email=data.customer_email,
        customer_name=data.customer_name,
        payment_method=data.payment_method,
        currency=data.currency,
    )
    order = unwrap(result)
    return {"order": order, "payment": result.payment}
