"""
Order Model
Read view of the marketplace order documents used by analytics and export
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List
from enum import Enum


class OrderStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


# Statuses counted toward revenue and order metrics
RECOGNIZED_STATUSES = [
    OrderStatus.CONFIRMED.value,
    OrderStatus.PROCESSING.value,
    OrderStatus.SHIPPED.value,
    OrderStatus.DELIVERED.value,
]


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if isinstance(value, datetime) else None


def _money(value) -> float:
    return float(value or 0)


# Customer fields carried on exported orders
CUSTOMER_EXPORT_FIELDS = ('_id', 'firstName', 'lastName', 'email')


def _parse_status(value) -> OrderStatus | str:
    """Known statuses become OrderStatus; anything else is kept as the stored string"""
    if isinstance(value, OrderStatus):
        return value
    if not value:
        return OrderStatus.PENDING
    try:
        return OrderStatus(value)
    except ValueError:
        return str(value)


@dataclass
class OrderItem:
    """Line item inside a vendor order"""
    product_id: str
    name: str
    quantity: int
    price: float
    total: float

    def to_dict(self) -> dict:
        return {
            'productId': self.product_id,
            'name': self.name,
            'quantity': self.quantity,
            'price': self.price,
            'total': self.total,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'OrderItem':
        return cls(
            product_id=str(data.get('productId', '')),
            name=data.get('name', ''),
            quantity=int(data.get('quantity') or 0),
            price=_money(data.get('price')),
            total=_money(data.get('total')),
        )


@dataclass
class VendorOrder:
    """Portion of an order fulfilled by a single vendor"""
    vendor_id: str
    total: float
    items: List[OrderItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'vendorId': self.vendor_id,
            'total': self.total,
            'items': [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'VendorOrder':
        return cls(
            vendor_id=str(data.get('vendorId', '')),
            total=_money(data.get('total')),
            items=[OrderItem.from_dict(item) for item in data.get('items') or []],
        )


@dataclass
class Order:
    """Order document model for MongoDB"""
    user_id: str
    total: float
    # Statuses outside OrderStatus are kept as the stored string
    status: OrderStatus | str = OrderStatus.PENDING
    tax: float = 0.0
    shipping: float = 0.0
    discount: float = 0.0
    vendor_orders: List[VendorOrder] = field(default_factory=list)
    created_at: Optional[datetime] = None
    # Populated from the users collection on export
    customer: Optional[dict] = None
    _id: Optional[str] = None

    @property
    def status_value(self) -> str:
        return self.status.value if isinstance(self.status, OrderStatus) else self.status

    @property
    def is_recognized(self) -> bool:
        return self.status_value in RECOGNIZED_STATUSES

    def public_customer(self) -> Optional[dict]:
        if not isinstance(self.customer, dict):
            return None
        return {key: self.customer.get(key) for key in CUSTOMER_EXPORT_FIELDS}

    def to_public_dict(self) -> dict:
        """Return public order info"""
        return {
            '_id': str(self._id) if self._id else None,
            'userId': self.user_id,
            'customer': self.public_customer(),
            'status': self.status_value,
            'total': self.total,
            'tax': self.tax,
            'shipping': self.shipping,
            'discount': self.discount,
            'vendorOrders': [vo.to_dict() for vo in self.vendor_orders],
            'itemCount': sum(len(vo.items) for vo in self.vendor_orders),
            'createdAt': _isoformat(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Order':
        """Create Order instance from MongoDB document"""
        return cls(
            _id=str(data.get('_id')) if data.get('_id') else None,
            user_id=str(data.get('userId', '')),
            total=_money(data.get('total')),
            status=_parse_status(data.get('status')),
            tax=_money(data.get('tax')),
            shipping=_money(data.get('shipping')),
            discount=_money(data.get('discount')),
            vendor_orders=[VendorOrder.from_dict(vo) for vo in data.get('vendorOrders') or []],
            created_at=data.get('createdAt'),
            customer=data.get('customer'),
        )
