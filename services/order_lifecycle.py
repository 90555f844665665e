"""
Order lifecycle controller.

Drives an order through submission, shopkeeper decision, payment and pickup.
Every public operation returns an ``OrderResult``; business-rule failures come back
as its ``error`` instead of being raised. Storage failures (``PersistenceError``)
are not caught here and reach the caller unchanged.
"""
import logging
import random
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Awaitable, List, Optional

from core.config import settings
from core.errors import InvalidTransition, LifecycleFailure, OrderNotFound, ValidationError
from models.order import (
    FULFILLMENT_STEPS,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    can_transition,
)
from schemas.order import (
    MAX_CUSTOM_REASON_LENGTH,
    PREPARATION_TIMES,
    REJECTION_LABELS,
    OrderCreate,
    RejectionReason,
)
from schemas.payment import PaymentDetails, PaymentResult
from services.catalog import Catalog
from services.notifications import Notifier
from services.order_repository import OrderRepository
from services.payment_simulator import PaymentSimulator

logger = logging.getLogger(__name__)


@dataclass
class OrderResult:
    order: Optional[Order] = None
    error: Optional[LifecycleFailure] = None
    payment: Optional[PaymentResult] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def resolve_rejection_reason(reason: Optional[str], custom_reason: Optional[str] = None) -> str:
    """Turn a reason code (plus free text for ``other``) into the label stored on the order."""
    if not reason:
        raise ValidationError("A rejection reason is required")
    try:
        code = RejectionReason(reason)
    except ValueError:
        raise ValidationError(f"Unknown rejection reason: {reason}") from None
    if code != RejectionReason.OTHER:
        return REJECTION_LABELS[code]

    text = (custom_reason or "").strip()
    if not text:
        raise ValidationError("Please describe the reason for rejecting the order")
    if len(text) > MAX_CUSTOM_REASON_LENGTH:
        raise ValidationError(f"Custom reason must be at most {MAX_CUSTOM_REASON_LENGTH} characters")
    return text


class OrderLifecycleController:
    def __init__(
        self,
        repository: OrderRepository,
        catalog: Catalog,
        payments: PaymentSimulator,
        notifier: Optional[Notifier] = None,
        rng: Optional[random.Random] = None,
    ):
        self.repository = repository
        self.catalog = catalog
        self.payments = payments
        self.notifier = notifier
        self.rng = rng or random.Random()

    def _now(self):
        return self.repository.store.clock()

    async def _guard(self, action: Awaitable[OrderResult]) -> OrderResult:
        try:
            return await action
        except LifecycleFailure as failure:
            logger.info(f"Order action refused ({failure.code}): {failure.message}")
            return OrderResult(error=failure)

    async def _load(self, order_id: str) -> Order:
        order = await self.repository.find_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    async def _transition(
        self, order: Order, target: OrderStatus, source: str, note: str = "", notify: bool = True, **changes: Any
    ) -> Order:
        if not can_transition(order.status, target):
            raise InvalidTransition(order.id, order.status.value, target.value)
        updated = await self.repository.record_transition(order, target, source=source, note=note, **changes)
        if updated is None:
            # cleared underneath us, e.g. by a data reset
            raise OrderNotFound(order.id)
        logger.info(f"Order {order.id} (token {order.token_number}): {order.status.value} -> {target.value}")
        if notify and self.notifier is not None:
            await self.notifier.order_changed(updated)
        return updated

    async def _check_owner(self, order: Order, shopkeeper_id: Optional[str]) -> None:
        if not shopkeeper_id:
            return
        owner_id = await self.catalog.get_shop_owner_id(order.shop_id)
        if owner_id and owner_id != shopkeeper_id:
            raise ValidationError(f"User {shopkeeper_id} does not own shop {order.shop_id}", order_id=order.id)

    async def _price_items(self, draft: OrderCreate) -> List[OrderItem]:
        if not draft.items:
            raise ValidationError("Order must contain items")
        priced = []
        for item in draft.items:
            price = item.price
            if price is None:
                menu_item = await self.catalog.get_menu_item(item.menu_item_id)
                if menu_item is None or menu_item.shop_id != draft.shop_id:
                    raise ValidationError(f"Menu item {item.menu_item_id} not found for shop {draft.shop_id}")
                if not menu_item.is_available:
                    raise ValidationError(f"{menu_item.name} is currently unavailable")
                price = menu_item.price
            priced.append(OrderItem(menu_item_id=item.menu_item_id, quantity=item.quantity, price=price, notes=item.notes))
        return priced

    # -------------------- customer actions --------------------

    async def submit_order(self, draft: OrderCreate) -> OrderResult:
        return await self._guard(self._submit_order(draft))

    async def _submit_order(self, draft: OrderCreate) -> OrderResult:
        items = await self._price_items(draft)
        # Drawn once, never reassigned; uniqueness across active orders is not checked
        token_number = self.rng.randint(1, 999)
        order = await self.repository.submit(
            user_id=draft.user_id,
            shop_id=draft.shop_id,
            items=items,
            token_number=token_number,
            notes=draft.notes,
            payment_method=draft.payment_method,
        )
        logger.info(f"Order {order.id} submitted for approval, token {order.token_number}, total {order.total_amount:.2f}")
        if self.notifier is not None:
            await self.notifier.order_changed(order)
        return OrderResult(order=order)

    async def initiate_payment(
        self,
        order_id: str,
        customer_email: str,
        customer_name: str,
        payment_method: PaymentMethod = PaymentMethod.CARD,
        currency: Optional[str] = None,
    ) -> OrderResult:
        return await self._guard(
            self._initiate_payment(order_id, customer_email, customer_name, payment_method, currency)
        )

    async def _initiate_payment(self, order_id, customer_email, customer_name, payment_method, currency) -> OrderResult:
        order = await self._load(order_id)
        if order.status == OrderStatus.PAYMENT_FAILED:
            # a retry is a fresh attempt from the approved state, not announced again
            order = await self._transition(
                order, OrderStatus.APPROVED, source="customer", note="payment retry", notify=False,
                payment_status=PaymentStatus.PENDING, payment_error=None,
            )
        order = await self._transition(
            order, OrderStatus.PAYMENT_PENDING, source="customer",
            payment_status=PaymentStatus.PENDING, payment_method=payment_method,
        )

        result = await self.payments.process_payment(
            PaymentDetails(
                amount=order.total_amount,
                currency=currency or settings.PAYMENT_CURRENCY,
                order_id=order.id,
                customer_email=customer_email,
                customer_name=customer_name,
            )
        )

        current = await self._load(order.id)
        target = OrderStatus.PAYMENT_COMPLETED if result.success else OrderStatus.PAYMENT_FAILED
        if current.status != OrderStatus.PAYMENT_PENDING:
            logger.warning(f"Order {order.id} moved to {current.status.value} during payment, outcome not applied")
            return OrderResult(
                order=current,
                error=InvalidTransition(order.id, current.status.value, target.value),
                payment=result,
            )

        if result.success:
            updated = await self._transition(
                current, target, source="payment",
                payment_status=PaymentStatus.COMPLETED, transaction_id=result.transaction_id,
            )
        else:
            updated = await self._transition(
                current, target, source="payment", note=result.error or "",
                payment_status=PaymentStatus.FAILED, payment_error=result.error, transaction_id=None,
            )
        return OrderResult(order=updated, payment=result)

    async def cancel(self, order_id: str, reason: Optional[str] = None, source: str = "customer") -> OrderResult:
        return await self._guard(self._cancel(order_id, reason, source))

    async def _cancel(self, order_id: str, reason: Optional[str], source: str) -> OrderResult:
        order = await self._load(order_id)
        changes: dict = {"cancellation_reason": reason}
        if order.payment_status == PaymentStatus.COMPLETED:
            changes["payment_status"] = PaymentStatus.REFUNDED
        elif order.payment_status == PaymentStatus.FAILED:
            changes["payment_status"] = None
        updated = await self._transition(order, OrderStatus.CANCELLED, source=source, note=reason or "", **changes)
        return OrderResult(order=updated)

    # -------------------- shopkeeper actions --------------------

    async def approve(self, order_id: str, preparation_time: int, shopkeeper_id: Optional[str] = None) -> OrderResult:
        return await self._guard(self._approve(order_id, preparation_time, shopkeeper_id))

    async def _approve(self, order_id: str, preparation_time: int, shopkeeper_id: Optional[str]) -> OrderResult:
        if preparation_time not in PREPARATION_TIMES:
            raise ValidationError(
                f"Preparation time must be one of {', '.join(map(str, PREPARATION_TIMES))} minutes",
                order_id=order_id,
            )
        order = await self._load(order_id)
        await self._check_owner(order, shopkeeper_id)
        pickup = self._now() + timedelta(minutes=preparation_time)
        updated = await self._transition(
            order, OrderStatus.APPROVED, source="shopkeeper", note=f"{preparation_time} min",
            estimated_pickup_time=pickup,
        )
        return OrderResult(order=updated)

    async def reject(
        self,
        order_id: str,
        reason: Optional[str],
        custom_reason: Optional[str] = None,
        shopkeeper_id: Optional[str] = None,
    ) -> OrderResult:
        return await self._guard(self._reject(order_id, reason, custom_reason, shopkeeper_id))

    async def _reject(self, order_id, reason, custom_reason, shopkeeper_id) -> OrderResult:
        label = resolve_rejection_reason(reason, custom_reason)
        order = await self._load(order_id)
        await self._check_owner(order, shopkeeper_id)
        updated = await self._transition(
            order, OrderStatus.REJECTED, source="shopkeeper", note=label, rejection_reason=label
        )
        return OrderResult(order=updated)

    async def advance_status(self, order_id: str) -> OrderResult:
        """Move a paid order one step along preparing -> ready -> fulfilled."""
        return await self._guard(self._advance_status(order_id))

    async def _advance_status(self, order_id: str) -> OrderResult:
        order = await self._load(order_id)
        target = FULFILLMENT_STEPS.get(order.status)
        if target is None:
            raise InvalidTransition(order.id, order.status.value, "next fulfillment step")
        changes = {}
        if target == OrderStatus.FULFILLED:
            changes["actual_pickup_time"] = self._now()
        updated = await self._transition(order, target, source="shopkeeper", **changes)
        return OrderResult(order=updated)
