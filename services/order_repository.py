import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError as SchemaError
from pydantic.alias_generators import to_camel
from pydantic_core import to_jsonable_python

from core.store import RecordStore
from models.order import Order, OrderItem, OrderStatus, PaymentMethod, PaymentStatus, StatusChange

logger = logging.getLogger(__name__)

COLLECTION = Order.__collection__


def order_total(items: Iterable[OrderItem]) -> float:
    # exact sum of the lines; not rounded so it always matches quantity x price
    total = sum((Decimal(str(item.price)) * item.quantity for item in items), Decimal("0"))
    return float(total)


def _to_patch(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Map python field names to stored (camelCase) keys and JSON-ready values."""
    patch = {}
    for name, value in changes.items():
        field = Order.model_fields.get(name)
        if field is None:
            raise ValueError(f"Unknown order field: {name}")
        patch[field.alias or to_camel(name)] = to_jsonable_python(value, by_alias=True)
    return patch


class OrderRepository:
    """Typed access to the ``orders`` collection. Every list comes back oldest first."""

    def __init__(self, store: RecordStore):
        self.store = store

    def _parse(self, record: Dict[str, Any]) -> Optional[Order]:
        try:
            return Order.model_validate(record)
        except SchemaError as exc:
            logger.warning(f"Skipping malformed order record {record.get('id')}: {exc.error_count()} errors")
            return None

    def _parse_sorted(self, records: List[Dict[str, Any]]) -> List[Order]:
        orders = [o for o in (self._parse(r) for r in records) if o is not None]
        # stable sort keeps insertion order for equal timestamps
        return sorted(orders, key=lambda o: o.created_at)

    async def submit(
        self,
        user_id: str,
        shop_id: str,
        items: List[OrderItem],
        token_number: int,
        notes: Optional[str] = None,
        payment_method: Optional[PaymentMethod] = None,
    ) -> Order:
        now = self.store.clock()
        data = {
            "user_id": user_id,
            "shop_id": shop_id,
            "items": items,
            "total_amount": order_total(items),
            "status": OrderStatus.PENDING_APPROVAL,
            "token_number": token_number,
            "estimated_pickup_time": None,
            "payment_status": PaymentStatus.PENDING,
            "payment_method": payment_method,
            "notes": notes,
            "status_history": [StatusChange(status=OrderStatus.PENDING_APPROVAL, at=now, source="customer")],
        }
        result = await self.store.create(COLLECTION, _to_patch(data))
        return Order.model_validate(result.record)

    async def find_by_id(self, order_id: str) -> Optional[Order]:
        record = await self.store.find_by_id(COLLECTION, order_id)
        return self._parse(record) if record else None

    async def find_pending_for_shop(self, shop_id: str) -> List[Order]:
        """The shop's approval queue, FIFO by creation time."""
        return await self.find_by_status(shop_id, OrderStatus.PENDING_APPROVAL)

    async def find_by_status(self, shop_id: str, status: OrderStatus) -> List[Order]:
        records = await self.store.find_many(COLLECTION, {"shopId": shop_id, "status": OrderStatus(status).value})
        return self._parse_sorted(records)

    async def find_by_shop(self, shop_id: str) -> List[Order]:
        return self._parse_sorted(await self.store.find_many(COLLECTION, {"shopId": shop_id}))

    async def find_by_user(self, user_id: str) -> List[Order]:
        return self._parse_sorted(await self.store.find_many(COLLECTION, {"userId": user_id}))

    async def update(self, order_id: str, changes: Dict[str, Any]) -> Optional[Order]:
        frozen = Order.IMMUTABLE_FIELDS.intersection(changes)
        if frozen:
            raise ValueError(f"Order fields cannot change after creation: {', '.join(sorted(frozen))}")
        record = await self.store.update(COLLECTION, order_id, _to_patch(changes))
        return self._parse(record) if record else None

    async def record_transition(
        self,
        order: Order,
        target: OrderStatus,
        source: str = "",
        note: str = "",
        **changes: Any,
    ) -> Optional[Order]:
        """Write ``target`` as the new status, appending to the order's history."""
        entry = StatusChange(status=target, at=self.store.clock(), source=source, note=note)
        changes.update(status=target, status_history=[*order.status_history, entry])
        return await self.update(order.id, changes)

    async def clear(self) -> int:
        return await self.store.delete_many(COLLECTION, {})
