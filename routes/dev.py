from fastapi import APIRouter, Depends

from core.deps import get_catalog, get_controller, get_store, unwrap
from core.store import RecordStore
from models import COLLECTIONS
from models.order import Order
from services.catalog import Catalog
from services.demo import DEMO_STUDENT_ID, generate_test_order, seed_demo_data
from services.order_lifecycle import OrderLifecycleController

router = APIRouter(prefix="/dev", tags=["dev"])


@router.get("/storage")
async def storage_summary(store: RecordStore = Depends(get_store)):
    """Record count for every known collection, including empty ones."""
    counts = {name: 0 for name in COLLECTIONS}
    counts.update(await store.summary())
    return counts


@router.post("/reset")
async def reset_all_data(store: RecordStore = Depends(get_store)):
    cleared = await store.clear_all()
    return {"cleared": cleared}


@router.post("/seed", status_code=201)
async def seed(catalog: Catalog = Depends(get_catalog)):
    return await seed_demo_data(catalog)


@router.post("/shops/{shop_id}/test-order", response_model=Order, status_code=201)
async def test_order(
    shop_id: str,
    user_id: str = DEMO_STUDENT_ID,
    controller: OrderLifecycleController = Depends(get_controller),
):
    return unwrap(await generate_test_order(controller, shop_id, user_id=user_id))
