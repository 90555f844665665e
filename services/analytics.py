from collections import Counter
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from models.order import PaymentStatus
from services.order_repository import OrderRepository


def _aware(moment: Optional[datetime]) -> Optional[datetime]:
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


async def order_analytics(
    repository: OrderRepository,
    shop_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Order counts and revenue for one shop, optionally limited to ``start <= createdAt < end``."""
    orders = await repository.find_by_shop(shop_id)
    start, end = _aware(start), _aware(end)
    if start is not None:
        orders = [o for o in orders if o.created_at >= start]
    if end is not None:
        orders = [o for o in orders if o.created_at < end]

    # only money that actually arrived counts as revenue
    paid = [o for o in orders if o.payment_status == PaymentStatus.COMPLETED]
    revenue = sum((Decimal(str(o.total_amount)) for o in paid), Decimal("0"))
    average = revenue / len(paid) if paid else Decimal("0")

    return {
        "shopId": shop_id,
        "totalOrders": len(orders),
        "paidOrders": len(paid),
        "totalRevenue": float(revenue.quantize(Decimal("0.01"))),
        "averageOrderValue": float(average.quantize(Decimal("0.01"))),
        "statusBreakdown": dict(Counter(o.status.value for o in orders)),
    }
