from __future__ import annotations

from dataclasses import dataclass
from typing import Any


ORDERS = "orders"
PRODUCTS = "products"
USERS = "users"
VENDORS = "vendors"

COLLECTIONS = (ORDERS, PRODUCTS, USERS, VENDORS)


@dataclass
class DbStatus:
    enabled: bool
    ok: bool
    message: str


class MarketplaceStore:
    """
    Read access to the marketplace collections.
    The collections are owned by the commerce backend. Documents are never written;
    ensure_indexes is the only write and runs only when MONGODB_CREATE_INDEXES is set.
    """

    def __init__(self, mongodb_uri: str | None, db_name: str, client: Any = None):
        self._enabled = bool(mongodb_uri) or client is not None
        self._mongodb_uri = mongodb_uri
        self._db_name = db_name

        self._client = client
        self._db = client[db_name] if client is not None else None

    @property
    def enabled(self) -> bool:
        return self._enabled

    def connect(self) -> None:
        if not self._enabled:
            return

        if self._db is not None:
            return

        from pymongo import MongoClient  # lazy import

        self._client = MongoClient(self._mongodb_uri, serverSelectionTimeoutMS=5000, tz_aware=True)
        self._db = self._client[self._db_name]

        # Touch the server to surface connection errors early
        self._client.admin.command("ping")

    def status(self) -> DbStatus:
        if not self._enabled:
            return DbStatus(enabled=False, ok=True, message="MongoDB disabled (MONGODB_URI not set)")

        try:
            self.connect()
            return DbStatus(enabled=True, ok=True, message="MongoDB connected")
        except Exception as e:  # pylint: disable=broad-except
            return DbStatus(enabled=True, ok=False, message=f"MongoDB error: {e}")

    def collection(self, name: str):
        """Return the named collection, or None when MongoDB is not configured"""
        if not self._enabled:
            return None

        self.connect()
        assert self._db is not None
        return self._db[name]

    @property
    def orders(self):
        return self.collection(ORDERS)

    @property
    def products(self):
        return self.collection(PRODUCTS)

    @property
    def users(self):
        return self.collection(USERS)

    @property
    def vendors(self):
        return self.collection(VENDORS)

    def ensure_indexes(self) -> None:
        """Create the indexes the analytics queries filter and join on"""
        if not self._enabled:
            return

        self.orders.create_index([("status", 1), ("createdAt", -1)])
        self.orders.create_index("userId")
        self.orders.create_index("vendorOrders.vendorId")
        self.products.create_index("vendor")
        self.products.create_index("category")
        self.users.create_index([("role", 1), ("createdAt", -1)])

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
        self._client = None
        self._db = None
