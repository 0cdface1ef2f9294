# Models package initialization
# Read-only views of the marketplace MongoDB documents

from .user import User, UserRole
from .product import Product, Inventory
from .order import Order, OrderItem, OrderStatus, VendorOrder, RECOGNIZED_STATUSES
from .vendor import Vendor

__all__ = [
    'User', 'UserRole', 'Product', 'Inventory', 'Order', 'OrderItem', 'OrderStatus',
    'VendorOrder', 'RECOGNIZED_STATUSES', 'Vendor',
]
