import logging
from typing import Any, Dict, List, Optional

from core.store import CreateResult, RecordStore
from models.menu_item import MenuItem
from models.shop import Shop
from models.user import User

logger = logging.getLogger(__name__)


def _dump(model) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"created_at", "updated_at"})


class Catalog:
    """Shops, menus and users. The order lifecycle only reads from here."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def get_shop(self, shop_id: str) -> Optional[Shop]:
        record = await self.store.find_by_id(Shop.__collection__, shop_id)
        return Shop.model_validate(record) if record else None

    async def get_shop_owner_id(self, shop_id: str) -> str:
        shop = await self.get_shop(shop_id)
        return shop.owner_id if shop else ""

    async def list_shops(self, active_only: bool = True) -> List[Shop]:
        filters = {"isActive": True} if active_only else {}
        return [Shop.model_validate(r) for r in await self.store.find_many(Shop.__collection__, filters)]

    async def get_menu_item(self, menu_item_id: str) -> Optional[MenuItem]:
        record = await self.store.find_by_id(MenuItem.__collection__, menu_item_id)
        return MenuItem.model_validate(record) if record else None

    async def menu_for_shop(self, shop_id: str, available_only: bool = False) -> List[MenuItem]:
        filters: Dict[str, Any] = {"shopId": shop_id}
        if available_only:
            filters["isAvailable"] = True
        return [MenuItem.model_validate(r) for r in await self.store.find_many(MenuItem.__collection__, filters)]

    async def get_user(self, user_id: str) -> Optional[User]:
        record = await self.store.find_by_id(User.__collection__, user_id)
        return User.model_validate(record) if record else None

    async def add_shop(self, shop: Shop) -> CreateResult:
        result = await self.store.create(Shop.__collection__, _dump(shop))
        if not result.created:
            logger.info(f"Shop with ID {shop.id} already exists, skipping creation")
        return result

    async def add_menu_item(self, item: MenuItem) -> CreateResult:
        return await self.store.create(MenuItem.__collection__, _dump(item))

    async def add_user(self, user: User) -> CreateResult:
        return await self.store.create(User.__collection__, _dump(user))
