"""
Product Model
Read view of the marketplace product documents
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .vendor import Vendor

# Category used for products without one
UNCATEGORIZED = 'General'


@dataclass
class Inventory:
    quantity: int = 0
    low_stock_threshold: int = 0

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_threshold

    @property
    def is_out_of_stock(self) -> bool:
        return self.quantity <= 0

    @classmethod
    def from_dict(cls, data: dict | None) -> 'Inventory':
        data = data or {}
        return cls(
            quantity=int(data.get('quantity', 0)),
            low_stock_threshold=int(data.get('lowStockThreshold', 0)),
        )


@dataclass
class Product:
    """Product document model for MongoDB"""
    name: str
    category: str
    vendor_id: str
    price: float = 0.0
    inventory: Inventory = field(default_factory=Inventory)
    # Populated from the vendors collection on export
    vendor_name: Optional[str] = None
    created_at: Optional[datetime] = None
    _id: Optional[str] = None

    def to_public_dict(self) -> dict:
        """Return public product info"""
        return {
            '_id': str(self._id) if self._id else None,
            'name': self.name,
            'category': self.category,
            'vendor': self.vendor_id,
            'vendorName': self.vendor_name,
            'price': self.price,
            'inventory': {
                'quantity': self.inventory.quantity,
                'lowStockThreshold': self.inventory.low_stock_threshold,
            },
            'lowStock': self.inventory.is_low_stock,
            'outOfStock': self.inventory.is_out_of_stock,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Product':
        """Create Product instance from MongoDB document"""
        vendor = data.get('vendor')
        vendor_name = None
        # Exported products carry the joined vendor document
        if isinstance(vendor, dict):
            joined = Vendor.from_dict(vendor)
            vendor_name = joined.business_name or None
            vendor = joined._id

        return cls(
            _id=str(data.get('_id')) if data.get('_id') else None,
            name=data.get('name', ''),
            category=data.get('category') or UNCATEGORIZED,
            vendor_id=str(vendor) if vendor else '',
            vendor_name=vendor_name,
            price=float(data.get('price', 0)),
            inventory=Inventory.from_dict(data.get('inventory')),
            created_at=data.get('createdAt'),
        )
