from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional

from models.order import CamelModel


class CrowdLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Shop(CamelModel):
    __collection__: ClassVar[str] = "shops"

    id: str
    name: str
    description: str = ""
    image: Optional[str] = None
    category: str = ""
    # Shopkeeper who approves this shop's orders
    owner_id: str
    is_active: bool = True
    location: str = ""
    phone: Optional[str] = None

    # Queue hints shown on the shop list
    crowd_level: CrowdLevel = CrowdLevel.LOW
    estimated_wait_time: int = 0
    active_tokens: int = 0
    rating: float = 0
    total_ratings: int = 0

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
