"""Tests for the aggregation engine."""

from datetime import datetime, timedelta

import mongomock
import pytest

from analytics import metrics
from analytics.engine import AggregationEngine, facet_value
from analytics.time_window import FINANCIAL_RANGES, VENDOR_RANGES, month_bounds, resolve_window
from db import MarketplaceStore
from tests.conftest import NOW, FakeStore, has_facet
from utils.errors import StoreUnavailableError


class TestFacetValue:
    """Tests for reading scalars out of $facet results."""

    def test_reads_first_row(self) -> None:
        assert facet_value([{"total": [{"total": 42}]}], "total", "total") == 42

    def test_empty_result(self) -> None:
        assert facet_value([], "total", "total") == 0

    def test_empty_branch(self) -> None:
        assert facet_value([{"total": []}], "total", "total") == 0

    def test_null_value_uses_default(self) -> None:
        assert facet_value([{"avg": [{"avg": None}]}], "avg", "avg", default=0) == 0


class TestEngineWithFakeStore:
    """Engine behaviour against canned collection results."""

    def test_empty_collections_yield_zero_defaults(self) -> None:
        engine = AggregationEngine(FakeStore())
        bounds = month_bounds(NOW)

        assert engine.revenue(bounds, NOW) == {"total": 0, "thisMonth": 0, "lastMonth": 0}
        assert engine.order_counts(bounds, NOW) == {
            "total": 0, "thisMonth": 0, "lastMonth": 0, "averageValue": 0,
        }
        assert engine.customer_counts(bounds, NOW) == {"total": 0, "new": 0}
        assert engine.inventory() == {"total": 0, "lowStock": 0, "outOfStock": 0}
        assert engine.top_selling_products() == []
        assert engine.active_customer_ids(NOW - timedelta(days=30), NOW) == []

    def test_revenue_facets_are_read(self) -> None:
        store = FakeStore()
        store.collections["orders"].when(
            has_facet("lastMonth"),
            [{"total": [{"total": 250}], "thisMonth": [{"total": 150}], "lastMonth": [{"total": 100}]}],
        )
        engine = AggregationEngine(store)

        assert engine.revenue(month_bounds(NOW), NOW) == {"total": 250, "thisMonth": 150, "lastMonth": 100}

    def test_active_customers_use_distinct(self) -> None:
        store = FakeStore()
        orders = store.collections["orders"]
        orders.distinct_result = ["u1", "u2"]
        since = NOW - timedelta(days=30)

        assert AggregationEngine(store).active_customer_ids(since, NOW) == ["u1", "u2"]
        assert orders.distinct_calls == [("userId", {"createdAt": {"$gte": since, "$lte": NOW}})]

    def test_limits_are_applied(self) -> None:
        store = FakeStore()
        engine = AggregationEngine(store, top_selling_limit=3, top_products_limit=4, top_customers_limit=5)
        window = resolve_window("7d", NOW)

        engine.top_selling_products()
        engine.top_products(window)
        engine.top_customers(window)

        limits = [
            [stage["$limit"] for stage in pipeline if "$limit" in stage]
            for pipeline in store.collections["orders"].pipelines
        ]
        assert limits == [[3], [4], [5]]

    def test_disabled_store_raises_unavailable(self) -> None:
        engine = AggregationEngine(FakeStore(enabled=False))
        with pytest.raises(StoreUnavailableError):
            engine.inventory()

    def test_store_errors_propagate(self) -> None:
        store = FakeStore()
        store.collections["orders"].error = RuntimeError("connection reset")
        with pytest.raises(RuntimeError):
            AggregationEngine(store).revenue(month_bounds(NOW), NOW)

    def test_export_customers_excludes_password(self) -> None:
        store = FakeStore()
        users = store.collections["users"]
        users.find_result = [{"_id": "u1", "firstName": "Ada"}]
        start = NOW - timedelta(days=30)

        assert AggregationEngine(store).export_customers(start, NOW) == [{"_id": "u1", "firstName": "Ada"}]
        query, projection = users.find_calls[0]
        assert query == {"role": "customer", "createdAt": {"$gte": start, "$lte": NOW}}
        assert projection == {"password": 0}


class TestDashboardFacetsOnMongo:
    """Run the dashboard facets on an in-memory MongoDB."""

    now = datetime(2026, 3, 15, 12, 0)

    @pytest.fixture
    def engine(self) -> AggregationEngine:
        client = mongomock.MongoClient()
        orders = client["marketplace_test"]["orders"]
        orders.insert_many([
            {"userId": "u1", "status": "delivered", "total": 100.0, "createdAt": datetime(2026, 3, 2)},
            {"userId": "u2", "status": "confirmed", "total": 50.0, "createdAt": datetime(2026, 3, 10)},
            {"userId": "u3", "status": "cancelled", "total": 999.0, "createdAt": datetime(2026, 3, 11)},
            {"userId": "u1", "status": "shipped", "total": 100.0, "createdAt": datetime(2026, 2, 28, 23, 0)},
            {"userId": "u4", "status": "pending", "total": 70.0, "createdAt": datetime(2026, 2, 3)},
        ])
        store = MarketplaceStore(None, "marketplace_test", client=client)
        return AggregationEngine(store)

    def test_revenue_slices(self, engine: AggregationEngine) -> None:
        revenue = engine.revenue(month_bounds(self.now), self.now)
        assert revenue == {"total": 250.0, "thisMonth": 150.0, "lastMonth": 100.0}

    def test_cancelled_and_pending_not_counted(self, engine: AggregationEngine) -> None:
        counts = engine.order_counts(month_bounds(self.now), self.now)
        assert counts["total"] == 3
        assert counts["thisMonth"] == 2
        assert counts["lastMonth"] == 1
        assert counts["averageValue"] == pytest.approx(250.0 / 3)

    def test_active_customers(self, engine: AggregationEngine) -> None:
        active = engine.active_customer_ids(self.now - timedelta(days=30), self.now)
        assert sorted(active) == ["u1", "u2", "u3"]


def _line(product_id: str, name: str, quantity: int, total: float) -> dict:
    return {"productId": product_id, "name": name, "quantity": quantity, "price": total / quantity, "total": total}


def _order(user_id: str, status: str, created_at: datetime, *items: dict, vendor_id: str = "v1") -> dict:
    total = sum(item["total"] for item in items)
    return {
        "userId": user_id,
        "status": status,
        "total": total,
        "tax": 0.0,
        "shipping": 0.0,
        "discount": 0.0,
        "vendorOrders": [{"vendorId": vendor_id, "total": total, "items": list(items)}],
        "createdAt": created_at,
    }


class TestSalesAndVendorPipelinesOnMongo:
    """Run the joined sales, vendor and report pipelines on an in-memory MongoDB."""

    now = datetime(2026, 3, 15, 12, 0)

    @pytest.fixture
    def client(self) -> mongomock.MongoClient:
        client = mongomock.MongoClient()
        db = client["marketplace_test"]
        db["users"].insert_many([
            {"_id": "u1", "firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com",
             "role": "customer", "phone": "+44 20 7946 0000", "resetToken": "secret", "password": "hash"},
            {"_id": "u2", "firstName": "Grace", "lastName": "Hopper", "email": "grace@example.com",
             "role": "customer"},
        ])
        # p2 was deleted after it sold, so its line items have no product to join
        db["products"].insert_one({"_id": "p1", "name": "Mug", "category": "Kitchen", "vendor": "v1"})
        db["orders"].insert_many([
            # 2026-03-02 and 2026-03-03 share a week, 2026-03-10 starts the next one
            _order("u1", "delivered", datetime(2026, 3, 2), _line("p1", "Mug", 2, 40.0), _line("p2", "Lamp", 1, 20.0)),
            _order("u1", "shipped", datetime(2026, 3, 3), _line("p1", "Mug", 2, 40.0)),
            _order("u2", "confirmed", datetime(2026, 3, 10), _line("p2", "Lamp", 1, 30.0)),
            _order("u2", "cancelled", datetime(2026, 3, 11), _line("p1", "Mug", 25, 500.0)),
        ])
        return client

    @staticmethod
    def _engine(client: mongomock.MongoClient) -> AggregationEngine:
        return AggregationEngine(MarketplaceStore(None, "marketplace_test", client=client))

    def test_top_products_fall_back_to_general(self, client: mongomock.MongoClient) -> None:
        rows = self._engine(client).top_products(resolve_window("30d", self.now))

        assert [(r["productId"], r["category"], r["unitsSold"], r["revenue"]) for r in rows] == [
            ("p1", "Kitchen", 4, 80.0),
            ("p2", "General", 2, 50.0),
        ]

    def test_sales_by_category(self, client: mongomock.MongoClient) -> None:
        rows = self._engine(client).sales_by_category(resolve_window("30d", self.now))

        assert rows == [
            {"category": "Kitchen", "revenue": 80.0, "units": 4},
            {"category": "General", "revenue": 50.0, "units": 2},
        ]

    def test_top_customers_join_names(self, client: mongomock.MongoClient) -> None:
        rows = self._engine(client).top_customers(resolve_window("30d", self.now))

        ada, grace = rows
        assert ada["customerId"] == "u1"
        assert ada["name"] == "Ada Lovelace"
        assert ada["orders"] == 2
        assert ada["totalSpent"] == 100.0
        assert ada["averageOrderValue"] == pytest.approx(50.0)
        assert grace["name"] == "Grace Hopper"
        assert grace["averageOrderValue"] == pytest.approx(30.0)

    def test_revenue_report_groups_by_week(self, client: mongomock.MongoClient) -> None:
        window = resolve_window("3m", self.now, FINANCIAL_RANGES)
        rows = self._engine(client).revenue_report(window)

        assert [row["_id"] for row in rows] == [
            {"year": 2026, "month": 3, "week": 9},
            {"year": 2026, "month": 3, "week": 10},
        ]
        assert [row["totalOrders"] for row in rows] == [2, 1]
        assert [row["totalRevenue"] for row in rows] == [100.0, 30.0]

    def test_profit_report_estimates_costs(self, client: mongomock.MongoClient) -> None:
        window = resolve_window("1y", self.now, FINANCIAL_RANGES)
        [row] = self._engine(client).profit_report(window, 0.6)

        assert row["_id"] == {"year": 2026, "month": 3}
        assert row["totalRevenue"] == 130.0
        assert row["estimatedCosts"] == pytest.approx(78.0)
        assert row["estimatedProfit"] == pytest.approx(52.0)

    def test_order_export_keeps_only_listed_customer_fields(self, client: mongomock.MongoClient) -> None:
        records = self._engine(client).export_orders(self.now - timedelta(days=30), self.now)

        assert len(records) == 4
        first = records[0]
        assert first["customer"] == {
            "_id": "u1", "firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com",
        }
        assert first["status"] == "delivered"
        assert "vendorOrders" in first

    def test_reference_vendor_scores_100(self) -> None:
        client = mongomock.MongoClient()
        db = client["marketplace_test"]
        db["vendors"].insert_one({"_id": "v1", "businessName": "Acme"})
        db["products"].insert_many([{"name": f"Item {i}", "vendor": "v1"} for i in range(50)])
        db["orders"].insert_many([
            _order("u1", "delivered", self.now - timedelta(days=1, minutes=i), _line("p1", "Item", 1, 100.0))
            for i in range(100)
        ])

        rows = self._engine(client).vendor_performance(resolve_window(None, self.now, VENDOR_RANGES))

        [row] = rows
        assert row["vendorName"] == "Acme"
        assert row["totalRevenue"] == 10000.0
        assert row["totalOrders"] == 100
        assert row["averageOrderValue"] == pytest.approx(100.0)
        assert row["activeProducts"] == 50
        [vendor] = metrics.build_vendor_rows(rows)
        assert vendor["performanceScore"] == pytest.approx(100.0)
