from datetime import datetime
from enum import Enum
from typing import ClassVar, Optional

from models.order import CamelModel


class UserRole(str, Enum):
    STUDENT = "student"
    SHOPKEEPER = "shopkeeper"
    DEVELOPER = "developer"


class User(CamelModel):
    __collection__: ClassVar[str] = "users"

    id: str
    email: str
    name: str
    role: UserRole = UserRole.STUDENT
    phone: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
