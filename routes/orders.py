from typing import List

from fastapi import APIRouter, Depends, HTTPException

from core.deps import get_controller, get_repository, unwrap
from models.order import Order
from schemas.order import ApprovalRequest, CancelRequest, OrderCreate, RejectionRequest
from services.order_lifecycle import OrderLifecycleController
from services.order_repository import OrderRepository

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("/", response_model=List[Order])
async def list_orders(user_id: str, repository: OrderRepository = Depends(get_repository)):
    return await repository.find_by_user(user_id)


@router.get("/{order_id}", response_model=Order)
async def get_order(order_id: str, repository: OrderRepository = Depends(get_repository)):
    order = await repository.find_by_id(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.post("/", response_model=Order, status_code=201)
async def submit_order(data: OrderCreate, controller: OrderLifecycleController = Depends(get_controller)):
    return unwrap(await controller.submit_order(data))


@router.post("/{order_id}/approve", response_model=Order)
async def approve_order(
    order_id: str, data: ApprovalRequest, controller: OrderLifecycleController = Depends(get_controller)
):
    return unwrap(await controller.approve(order_id, data.preparation_time, shopkeeper_id=data.shopkeeper_id))


@router.post("/{order_id}/reject", response_model=Order)
async def reject_order(
    order_id: str, data: RejectionRequest, controller: OrderLifecycleController = Depends(get_controller)
):
    return unwrap(
        await controller.reject(order_id, data.reason, data.custom_reason, shopkeeper_id=data.shopkeeper_id)
    )


@router.post("/{order_id}/advance", response_model=Order)
async def advance_order(order_id: str, controller: OrderLifecycleController = Depends(get_controller)):
    return unwrap(await controller.advance_status(order_id))


@router.post("/{order_id}/cancel", response_model=Order)
async def cancel_order(
    order_id: str, data: CancelRequest, controller: OrderLifecycleController = Depends(get_controller)
):
    return unwrap(await controller.cancel(order_id, data.reason))
