# Import models so every collection name is registered in one place
from .order import Order, OrderItem, OrderStatus, PaymentStatus, PaymentMethod  # noqa: F401
from .shop import Shop  # noqa: F401
from .menu_item import MenuItem  # noqa: F401
from .user import User  # noqa: F401
from .notification import Notification  # noqa: F401

COLLECTIONS = [m.__collection__ for m in (User, Shop, MenuItem, Order, Notification)]
