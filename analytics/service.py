"""
Analytics Service
Request-level orchestration: captures the clock once, resolves windows,
runs the engine queries and assembles the payloads.
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from config import ScoreCalibration
from analytics import metrics
from analytics.engine import AggregationEngine
from analytics.time_window import (
    FINANCIAL_RANGES,
    SALES_RANGES,
    VENDOR_RANGES,
    month_bounds,
    resolve_window,
    trailing_days,
)
from models.order import Order
from models.product import Product
from models.user import User
from utils.errors import NotImplementedFeatureError, ValidationError
from utils.validators import parse_iso_datetime, validate_choice

REPORT_TYPES = ('revenue', 'profit')
EXPORT_TYPES = ('orders', 'customers', 'products')
EXPORT_FORMATS = ('json', 'csv')

ACTIVE_CUSTOMER_DAYS = 30
DEFAULT_EXPORT_DAYS = 30


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AnalyticsService:
    def __init__(self, engine: AggregationEngine, profit_cost_ratio: float = 0.6,
                 score: Optional[ScoreCalibration] = None, parallel_facets: bool = False,
                 clock: Callable[[], datetime] = utc_now):
        self.engine = engine
        self.profit_cost_ratio = profit_cost_ratio
        self.score = score or ScoreCalibration()
        self.parallel_facets = parallel_facets
        self._clock = clock

    @classmethod
    def from_settings(cls, store, settings, clock: Callable[[], datetime] = utc_now) -> 'AnalyticsService':
        engine = AggregationEngine(
            store,
            top_selling_limit=settings.top_selling_limit,
            top_products_limit=settings.top_products_limit,
            top_customers_limit=settings.top_customers_limit,
        )
        return cls(
            engine,
            profit_cost_ratio=settings.profit_cost_ratio,
            score=settings.score,
            parallel_facets=settings.parallel_facets,
            clock=clock,
        )

    def now(self) -> datetime:
        return self._clock()

    def _run_all(self, calls: Dict[str, Callable[[], Any]]) -> Dict[str, Any]:
        """Run independent facet queries; the first failure fails the whole request"""
        if not self.parallel_facets:
            return {name: call() for name, call in calls.items()}

        with ThreadPoolExecutor(max_workers=len(calls)) as pool:
            futures = {name: pool.submit(call) for name, call in calls.items()}
            return {name: future.result() for name, future in futures.items()}

    def dashboard(self) -> dict:
        now = self.now()
        bounds = month_bounds(now)
        engine = self.engine

        results = self._run_all({
            'revenue': lambda: engine.revenue(bounds, now),
            'orders': lambda: engine.order_counts(bounds, now),
            'customers': lambda: engine.customer_counts(bounds, now),
            'active': lambda: engine.active_customer_ids(trailing_days(now, ACTIVE_CUSTOMER_DAYS), now),
            'inventory': engine.inventory,
            'top_selling': engine.top_selling_products,
        })

        return metrics.build_dashboard(
            revenue=results['revenue'],
            orders=results['orders'],
            customers=results['customers'],
            active_customers=len(results['active']),
            inventory=results['inventory'],
            top_selling=results['top_selling'],
        )

    def sales(self, range_token: Optional[str] = None) -> dict:
        window = resolve_window(range_token, self.now(), SALES_RANGES)
        engine = self.engine

        results = self._run_all({
            'daily': lambda: engine.daily_sales(window),
            'products': lambda: engine.top_products(window),
            'customers': lambda: engine.top_customers(window),
            'categories': lambda: engine.sales_by_category(window),
        })

        payload = metrics.build_sales(
            daily=results['daily'],
            top_products=results['products'],
            top_customers=results['customers'],
            categories=results['categories'],
        )
        payload['period'] = window.to_dict()
        return payload

    def financial(self, report_type: Optional[str] = None, range_token: Optional[str] = None) -> dict:
        report_type = report_type or 'revenue'
        is_valid, _ = validate_choice(report_type, REPORT_TYPES, 'report type')
        if not is_valid:
            raise ValidationError('Invalid report type')

        window = resolve_window(range_token, self.now(), FINANCIAL_RANGES)
        if report_type == 'profit':
            rows = self.engine.profit_report(window, self.profit_cost_ratio)
        else:
            rows = self.engine.revenue_report(window)

        payload = metrics.build_financial(report_type, rows)
        payload['period'] = window.to_dict()
        return payload

    def vendors(self, range_token: Optional[str] = None) -> dict:
        window = resolve_window(range_token, self.now(), VENDOR_RANGES)
        rows = self.engine.vendor_performance(window)
        return {
            'vendors': metrics.build_vendor_rows(rows, self.score),
            'period': window.to_dict(),
        }

    def export(self, export_type: Optional[str], export_format: Optional[str] = None,
               date_range: Optional[dict] = None) -> dict:
        """
        Dump raw records of one collection within a creation-date range.
        All validation happens before the store is read.
        """
        if not export_type:
            raise ValidationError('Export type is required')
        is_valid, _ = validate_choice(export_type, EXPORT_TYPES, 'export type')
        if not is_valid:
            raise ValidationError('Invalid export type')

        export_format = export_format or 'json'
        is_valid, _ = validate_choice(export_format, EXPORT_FORMATS, 'export format')
        if not is_valid:
            raise ValidationError('Invalid export format')

        if date_range is not None and not isinstance(date_range, dict):
            raise ValidationError('Invalid date range')
        date_range = date_range or {}

        start, error = parse_iso_datetime(date_range.get('start'), 'start date')
        if error:
            raise ValidationError(error)
        end, error = parse_iso_datetime(date_range.get('end'), 'end date')
        if error:
            raise ValidationError(error)

        # TODO: stream a CSV body per export type once the column layout is agreed with reporting
        if export_format == 'csv':
            raise NotImplementedFeatureError('CSV export not yet implemented')

        now = self.now()
        start = start or trailing_days(now, DEFAULT_EXPORT_DAYS)
        end = end or now
        if start > end:
            raise ValidationError('Start date must be before end date')

        if export_type == 'orders':
            records = [Order.from_dict(doc).to_public_dict() for doc in self.engine.export_orders(start, end)]
        elif export_type == 'customers':
            records = [User.from_dict(doc).to_public_dict() for doc in self.engine.export_customers(start, end)]
        else:
            records = [Product.from_dict(doc).to_public_dict() for doc in self.engine.export_products(start, end)]

        return {
            'type': export_type,
            'format': export_format,
            'dateRange': {'start': start, 'end': end},
            'recordCount': len(records),
            'exportData': records,
        }
