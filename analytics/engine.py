"""
Aggregation Engine
Runs the analytics pipelines against the marketplace collections and
normalises empty results to zero/empty defaults.
"""

from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List

from db import ORDERS, PRODUCTS, USERS
from analytics import pipelines
from analytics.time_window import MonthBounds, TimeWindow
from utils.errors import StoreUnavailableError


def facet_value(result: List[dict], branch: str, field: str, default: Any = 0) -> Any:
    """
    Read a single scalar out of a one-document $facet result.
    Empty branches (no matching documents) yield `default`.
    """
    if not result:
        return default
    rows = result[0].get(branch) or []
    if not rows:
        return default
    value = rows[0].get(field)
    return default if value is None else value


class AggregationEngine:
    """Executes one query per analytics facet; every call is a single read with no retries"""

    def __init__(self, store, top_selling_limit: int = 10, top_products_limit: int = 20,
                 top_customers_limit: int = 20):
        self._store = store
        self.top_selling_limit = top_selling_limit
        self.top_products_limit = top_products_limit
        self.top_customers_limit = top_customers_limit

    def _collection(self, name: str):
        collection = self._store.collection(name)
        if collection is None:
            raise StoreUnavailableError()
        return collection

    def _aggregate(self, name: str, pipeline: pipelines.Pipeline) -> List[dict]:
        return list(self._collection(name).aggregate(pipeline))

    # -- dashboard ---------------------------------------------------------

    def revenue(self, bounds: MonthBounds, now: datetime) -> Dict[str, float]:
        result = self._aggregate(ORDERS, pipelines.revenue_facets(bounds, now))
        return {
            'total': facet_value(result, 'total', 'total'),
            'thisMonth': facet_value(result, 'thisMonth', 'total'),
            'lastMonth': facet_value(result, 'lastMonth', 'total'),
        }

    def order_counts(self, bounds: MonthBounds, now: datetime) -> Dict[str, float]:
        result = self._aggregate(ORDERS, pipelines.order_count_facets(bounds, now))
        return {
            'total': facet_value(result, 'total', 'count'),
            'thisMonth': facet_value(result, 'thisMonth', 'count'),
            'lastMonth': facet_value(result, 'lastMonth', 'count'),
            'averageValue': facet_value(result, 'averageValue', 'avg'),
        }

    def customer_counts(self, bounds: MonthBounds, now: datetime) -> Dict[str, int]:
        result = self._aggregate(USERS, pipelines.customer_facets(bounds, now))
        return {
            'total': facet_value(result, 'total', 'count'),
            'new': facet_value(result, 'new', 'count'),
        }

    def active_customer_ids(self, since: datetime, now: datetime) -> List[Any]:
        """Distinct buyers with any order in [since, now]"""
        return list(self._collection(ORDERS).distinct('userId', pipelines.active_customer_filter(since, now)))

    def top_selling_products(self) -> List[dict]:
        return self._aggregate(ORDERS, pipelines.top_selling_products(self.top_selling_limit))

    def inventory(self) -> Dict[str, int]:
        result = self._aggregate(PRODUCTS, pipelines.inventory_facets())
        return {
            'total': facet_value(result, 'total', 'count'),
            'lowStock': facet_value(result, 'lowStock', 'count'),
            'outOfStock': facet_value(result, 'outOfStock', 'count'),
        }

    # -- sales -------------------------------------------------------------

    def daily_sales(self, window: TimeWindow) -> List[dict]:
        return self._aggregate(ORDERS, pipelines.daily_sales(window))

    def top_products(self, window: TimeWindow) -> List[dict]:
        return self._aggregate(ORDERS, pipelines.top_products_by_revenue(window, self.top_products_limit))

    def top_customers(self, window: TimeWindow) -> List[dict]:
        return self._aggregate(ORDERS, pipelines.top_customers(window, self.top_customers_limit))

    def sales_by_category(self, window: TimeWindow) -> List[dict]:
        return self._aggregate(ORDERS, pipelines.sales_by_category(window))

    # -- vendors and finance -----------------------------------------------

    def vendor_performance(self, window: TimeWindow) -> List[dict]:
        return self._aggregate(ORDERS, pipelines.vendor_performance(window))

    def revenue_report(self, window: TimeWindow) -> List[dict]:
        return self._aggregate(ORDERS, pipelines.revenue_report(window))

    def profit_report(self, window: TimeWindow, cost_ratio: float) -> List[dict]:
        return self._aggregate(ORDERS, pipelines.profit_report(window, cost_ratio))

    # -- export ------------------------------------------------------------

    def export_orders(self, start: datetime, end: datetime) -> List[dict]:
        return self._aggregate(ORDERS, pipelines.export_orders(start, end))

    def export_customers(self, start: datetime, end: datetime) -> List[dict]:
        cursor = self._collection(USERS).find(
            pipelines.export_customers_filter(start, end),
            pipelines.EXPORT_CUSTOMER_PROJECTION,
        ).sort('createdAt', 1)
        return list(cursor)

    def export_products(self, start: datetime, end: datetime) -> List[dict]:
        return self._aggregate(PRODUCTS, pipelines.export_products(start, end))
