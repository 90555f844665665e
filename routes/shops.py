from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from core.deps import get_catalog, get_repository
from models.menu_item import MenuItem
from models.order import Order, OrderStatus
from services.analytics import order_analytics
from services.catalog import Catalog
from services.order_repository import OrderRepository

router = APIRouter(prefix="/shops", tags=["shops"])


@router.get("/{shop_id}/orders/pending", response_model=List[Order])
async def pending_orders(shop_id: str, repository: OrderRepository = Depends(get_repository)):
    """Approval queue, oldest first."""
    return await repository.find_pending_for_shop(shop_id)


@router.get("/{shop_id}/orders", response_model=List[Order])
async def shop_orders(
    shop_id: str,
    status: Optional[OrderStatus] = None,
    repository: OrderRepository = Depends(get_repository),
):
    if status is None:
        return await repository.find_by_shop(shop_id)
    return await repository.find_by_status(shop_id, status)


@router.get("/{shop_id}/analytics")
async def shop_analytics(
    shop_id: str,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    repository: OrderRepository = Depends(get_repository),
):
    return await order_analytics(repository, shop_id, start=start, end=end)


@router.get("/{shop_id}/menu", response_model=List[MenuItem])
async def shop_menu(shop_id: str, catalog: Catalog = Depends(get_catalog)):
    shop = await catalog.get_shop(shop_id)
    if not shop:
        raise HTTPException(status_code=404, detail="Shop not found")
    return await catalog.menu_for_shop(shop_id)
