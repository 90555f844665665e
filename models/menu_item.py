from datetime import datetime
from typing import ClassVar, List, Optional

from pydantic import Field

from models.order import CamelModel


class MenuItem(CamelModel):
    __collection__: ClassVar[str] = "menu_items"

    id: str
    shop_id: str
    name: str
    description: str = ""
    price: float = Field(ge=0)
    image: Optional[str] = None
    category: str = ""
    is_available: bool = True
    preparation_time: int = 10  # minutes
    ingredients: List[str] = Field(default_factory=list)
    allergens: List[str] = Field(default_factory=list)
    stock_quantity: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
