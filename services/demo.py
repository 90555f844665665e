"""Fixed demo data and a test-order generator for trying the approval flow by hand."""
import logging
import random
from typing import Dict, List, Optional

from models.menu_item import MenuItem
from models.shop import Shop
from models.user import User, UserRole
from schemas.order import OrderCreate, OrderItemIn
from services.catalog import Catalog
from services.order_lifecycle import OrderLifecycleController, OrderResult

logger = logging.getLogger(__name__)

DEMO_OWNER_ID = "test_owner_1"
DEMO_STUDENT_ID = "test_student_1"
DEMO_SHOP_ID = "test_shop_1"

DEMO_MENU = [
    {"id": "item_burger_001", "name": "Classic Burger", "price": 5.99, "category": "Burgers", "preparation_time": 10},
    {"id": "item_fries_001", "name": "French Fries", "price": 2.49, "category": "Sides", "preparation_time": 5},
    {"id": "item_coffee_001", "name": "Black Coffee", "price": 1.99, "category": "Drinks", "preparation_time": 3},
    {"id": "item_muffin_001", "name": "Blueberry Muffin", "price": 2.99, "category": "Bakery", "preparation_time": 2},
]

ORDER_NOTES = ["", "Extra ketchup please", "No onions", "One coffee black, one with milk"]


async def seed_demo_data(catalog: Catalog) -> Dict[str, List[str]]:
    """Create the demo shopkeeper, student, shop and menu. Safe to run repeatedly."""
    created: Dict[str, List[str]] = {"users": [], "shops": [], "menu_items": []}

    users = [
        User(id=DEMO_OWNER_ID, email="owner@campuseats.test", name="Test Owner", role=UserRole.SHOPKEEPER),
        User(id=DEMO_STUDENT_ID, email="student@campuseats.test", name="Test Student", role=UserRole.STUDENT),
    ]
    for user in users:
        if (await catalog.add_user(user)).created:
            created["users"].append(user.id)

    shop = Shop(
        id=DEMO_SHOP_ID,
        name="Test Burger Place",
        description="A test burger shop",
        category="Fast Food",
        owner_id=DEMO_OWNER_ID,
        location="Test Location",
        phone="+1-555-TEST",
    )
    if (await catalog.add_shop(shop)).created:
        created["shops"].append(shop.id)

    for entry in DEMO_MENU:
        item = MenuItem(shop_id=DEMO_SHOP_ID, **entry)
        if (await catalog.add_menu_item(item)).created:
            created["menu_items"].append(item.id)

    logger.info(f"Demo data seeded: {sum(len(v) for v in created.values())} new records")
    return created


async def generate_test_order(
    controller: OrderLifecycleController,
    shop_id: str,
    user_id: str = DEMO_STUDENT_ID,
    rng: Optional[random.Random] = None,
) -> OrderResult:
    """Submit a random order built from the shop's available menu."""
    rng = rng or random.Random()
    menu = await controller.catalog.menu_for_shop(shop_id, available_only=True)
    if not menu:
        # Let the controller report the empty order the usual way
        return await controller.submit_order(OrderCreate(user_id=user_id, shop_id=shop_id, items=[]))

    picks = rng.sample(menu, k=rng.randint(1, min(3, len(menu))))
    draft = OrderCreate(
        user_id=user_id,
        shop_id=shop_id,
        items=[OrderItemIn(menu_item_id=item.id, quantity=rng.randint(1, 2)) for item in picks],
        notes=rng.choice(ORDER_NOTES) or None,
    )
    return await controller.submit_order(draft)
