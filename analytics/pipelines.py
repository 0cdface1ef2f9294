"""
Aggregation Pipelines
Builders for the MongoDB aggregation pipelines behind every analytics facet.

Stages are produced by small constructors (match, group, unwind, ...) so each
facet builder reads as a list of named steps and a wrong stage shape fails in
the builder rather than on the server. Builders are pure: they take the
resolved bounds and limits and return the pipeline, nothing is executed here.
"""

from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional

from db import PRODUCTS, USERS, VENDORS
from models.order import CUSTOMER_EXPORT_FIELDS, RECOGNIZED_STATUSES
from models.product import UNCATEGORIZED
from analytics.time_window import DAY, WEEK, MonthBounds, TimeWindow

Stage = Dict[str, Any]
Pipeline = List[Stage]

LINE_ITEM = '$vendorOrders.items'


# ---------------------------------------------------------------------------
# Stage constructors
# ---------------------------------------------------------------------------

def match(query: Dict[str, Any]) -> Stage:
    return {'$match': query}


def group(key: Any, **accumulators: Dict[str, Any]) -> Stage:
    return {'$group': {'_id': key, **accumulators}}


def unwind(path: str, preserve_empty: bool = False) -> Stage:
    if preserve_empty:
        return {'$unwind': {'path': path, 'preserveNullAndEmptyArrays': True}}
    return {'$unwind': path}


def lookup(from_collection: str, local_field: str, foreign_field: str, as_field: str) -> Stage:
    return {
        '$lookup': {
            'from': from_collection,
            'localField': local_field,
            'foreignField': foreign_field,
            'as': as_field,
        }
    }


def sort(*fields: str, descending: bool = False) -> Stage:
    direction = -1 if descending else 1
    return {'$sort': {f: direction for f in fields}}


def limit(n: int) -> Stage:
    return {'$limit': n}


def project(**fields: Any) -> Stage:
    return {'$project': fields}


def add_fields(**fields: Any) -> Stage:
    return {'$addFields': fields}


def count(field: str = 'count') -> Stage:
    return {'$count': field}


def facet(**branches: Pipeline) -> Stage:
    return {'$facet': branches}


def total_of(expression: Any) -> Dict[str, Any]:
    return {'$sum': expression}


def created_between(start: Optional[datetime] = None, end: Optional[datetime] = None) -> Dict[str, Any]:
    bounds: Dict[str, Any] = {}
    if start is not None:
        bounds['$gte'] = start
    if end is not None:
        bounds['$lte'] = end
    return {'createdAt': bounds} if bounds else {}


def recognized(start: Optional[datetime] = None, end: Optional[datetime] = None) -> Stage:
    """Match orders with a revenue-recognized status, optionally within [start, end]"""
    return match({'status': {'$in': list(RECOGNIZED_STATUSES)}, **created_between(start, end)})


def line_items() -> Pipeline:
    """Flatten orders into one document per vendor-order line item"""
    return [unwind('$vendorOrders'), unwind(LINE_ITEM)]


def with_product() -> Pipeline:
    """Left-join the product behind each line item"""
    return [
        lookup(PRODUCTS, 'vendorOrders.items.productId', '_id', 'product'),
        unwind('$product', preserve_empty=True),
    ]


def _sum_total() -> Pipeline:
    return [group(None, total=total_of('$total'))]


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

def revenue_facets(bounds: MonthBounds, now: datetime) -> Pipeline:
    return [
        facet(
            total=[recognized(), *_sum_total()],
            thisMonth=[recognized(bounds.start_of_month, now), *_sum_total()],
            lastMonth=[recognized(bounds.start_of_last_month, bounds.end_of_last_month), *_sum_total()],
        )
    ]


def order_count_facets(bounds: MonthBounds, now: datetime) -> Pipeline:
    return [
        facet(
            total=[recognized(), count()],
            thisMonth=[recognized(bounds.start_of_month, now), count()],
            lastMonth=[recognized(bounds.start_of_last_month, bounds.end_of_last_month), count()],
            averageValue=[recognized(), group(None, avg={'$avg': '$total'})],
        )
    ]


def customer_facets(bounds: MonthBounds, now: datetime) -> Pipeline:
    return [
        facet(
            total=[match({'role': 'customer'}), count()],
            new=[match({'role': 'customer', **created_between(bounds.start_of_month, now)}), count()],
        )
    ]


def active_customer_filter(since: datetime, now: datetime) -> Dict[str, Any]:
    """Filter for distinct('userId'): any order placed in the trailing window"""
    return created_between(since, now)


def top_selling_products(limit_to: int) -> Pipeline:
    return [
        recognized(),
        *line_items(),
        group(
            '$vendorOrders.items.productId',
            name={'$first': '$vendorOrders.items.name'},
            sold=total_of('$vendorOrders.items.quantity'),
            revenue=total_of('$vendorOrders.items.total'),
        ),
        sort('sold', descending=True),
        limit(limit_to),
        project(_id=0, productId='$_id', name=1, sold=1, revenue=1),
    ]


def inventory_facets() -> Pipeline:
    return [
        facet(
            total=[count()],
            lowStock=[
                match({'$expr': {'$lte': ['$inventory.quantity', '$inventory.lowStockThreshold']}}),
                count(),
            ],
            outOfStock=[match({'inventory.quantity': {'$lte': 0}}), count()],
        )
    ]


# ---------------------------------------------------------------------------
# Sales analytics
# ---------------------------------------------------------------------------

def daily_sales(window: TimeWindow) -> Pipeline:
    return [
        recognized(window.start, window.end),
        group(
            {
                'year': {'$year': '$createdAt'},
                'month': {'$month': '$createdAt'},
                'day': {'$dayOfMonth': '$createdAt'},
            },
            revenue=total_of('$total'),
            orders=total_of(1),
            customers={'$addToSet': '$userId'},
        ),
        project(
            _id=0,
            date={'$dateFromParts': {'year': '$_id.year', 'month': '$_id.month', 'day': '$_id.day'}},
            revenue=1,
            orders=1,
            customers={'$size': '$customers'},
        ),
        sort('date'),
    ]


def top_products_by_revenue(window: TimeWindow, limit_to: int) -> Pipeline:
    return [
        recognized(window.start, window.end),
        *line_items(),
        *with_product(),
        group(
            '$vendorOrders.items.productId',
            name={'$first': '$vendorOrders.items.name'},
            category={'$first': {'$ifNull': ['$product.category', UNCATEGORIZED]}},
            unitsSold=total_of('$vendorOrders.items.quantity'),
            revenue=total_of('$vendorOrders.items.total'),
        ),
        sort('revenue', descending=True),
        limit(limit_to),
        project(_id=0, productId='$_id', name=1, category=1, unitsSold=1, revenue=1),
    ]


def top_customers(window: TimeWindow, limit_to: int) -> Pipeline:
    return [
        recognized(window.start, window.end),
        group('$userId', orders=total_of(1), totalSpent=total_of('$total')),
        add_fields(averageOrderValue={'$divide': ['$totalSpent', '$orders']}),
        lookup(USERS, '_id', '_id', 'customer'),
        unwind('$customer'),
        project(
            _id=0,
            customerId='$_id',
            name={'$concat': ['$customer.firstName', ' ', '$customer.lastName']},
            orders=1,
            totalSpent=1,
            averageOrderValue=1,
        ),
        sort('totalSpent', descending=True),
        limit(limit_to),
    ]


def sales_by_category(window: TimeWindow) -> Pipeline:
    return [
        recognized(window.start, window.end),
        *line_items(),
        *with_product(),
        group(
            {'$ifNull': ['$product.category', UNCATEGORIZED]},
            revenue=total_of('$vendorOrders.items.total'),
            units=total_of('$vendorOrders.items.quantity'),
        ),
        project(_id=0, category='$_id', revenue=1, units=1),
        sort('revenue', descending=True),
    ]


# ---------------------------------------------------------------------------
# Vendors
# ---------------------------------------------------------------------------

def vendor_performance(window: TimeWindow) -> Pipeline:
    return [
        recognized(window.start, window.end),
        unwind('$vendorOrders'),
        group(
            '$vendorOrders.vendorId',
            totalRevenue=total_of('$vendorOrders.total'),
            totalOrders=total_of(1),
            averageOrderValue={'$avg': '$vendorOrders.total'},
            totalProducts=total_of({'$size': '$vendorOrders.items'}),
        ),
        lookup(VENDORS, '_id', '_id', 'vendor'),
        unwind('$vendor'),
        lookup(PRODUCTS, '_id', 'vendor', 'products'),
        project(
            _id=0,
            vendorId='$_id',
            vendorName='$vendor.businessName',
            totalRevenue=1,
            totalOrders=1,
            averageOrderValue=1,
            totalProducts=1,
            activeProducts={'$size': '$products'},
        ),
        sort('totalRevenue', descending=True),
    ]


# ---------------------------------------------------------------------------
# Financial reports
# ---------------------------------------------------------------------------

def period_key(granularity: str) -> Dict[str, Any]:
    key: Dict[str, Any] = {'year': {'$year': '$createdAt'}, 'month': {'$month': '$createdAt'}}
    if granularity == DAY:
        key['day'] = {'$dayOfMonth': '$createdAt'}
    elif granularity == WEEK:
        key['week'] = {'$week': '$createdAt'}
    return key


def _chronological(granularity: str) -> Stage:
    fields = ['_id.year', '_id.month']
    if granularity == DAY:
        fields.append('_id.day')
    elif granularity == WEEK:
        fields.append('_id.week')
    return sort(*fields)


def revenue_report(window: TimeWindow) -> Pipeline:
    return [
        recognized(window.start, window.end),
        group(
            period_key(window.granularity),
            totalRevenue=total_of('$total'),
            totalOrders=total_of(1),
            averageOrderValue={'$avg': '$total'},
            totalTax=total_of('$tax'),
            totalShipping=total_of('$shipping'),
            totalDiscount=total_of('$discount'),
        ),
        _chronological(window.granularity),
    ]


def profit_report(window: TimeWindow, cost_ratio: float) -> Pipeline:
    return [
        recognized(window.start, window.end),
        group(
            period_key(window.granularity),
            totalRevenue=total_of('$total'),
            totalOrders=total_of(1),
            estimatedCosts=total_of({'$multiply': ['$total', cost_ratio]}),
            estimatedProfit=total_of({'$multiply': ['$total', 1 - cost_ratio]}),
        ),
        _chronological(window.granularity),
    ]


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

# Order fields returned on export; the joined customer is reduced to
# CUSTOMER_EXPORT_FIELDS so new fields on users never leak into exports
EXPORT_ORDER_FIELDS = (
    'userId', 'status', 'total', 'tax', 'shipping', 'discount', 'vendorOrders', 'createdAt',
)


def export_orders(start: datetime, end: datetime) -> Pipeline:
    fields = {name: 1 for name in EXPORT_ORDER_FIELDS}
    fields.update({f'customer.{name}': 1 for name in CUSTOMER_EXPORT_FIELDS})
    return [
        match(created_between(start, end)),
        lookup(USERS, 'userId', '_id', 'customer'),
        unwind('$customer', preserve_empty=True),
        project(**fields),
        sort('createdAt'),
    ]


def export_products(start: datetime, end: datetime) -> Pipeline:
    return [
        match(created_between(start, end)),
        lookup(VENDORS, 'vendor', '_id', 'vendor'),
        unwind('$vendor', preserve_empty=True),
        sort('createdAt'),
    ]


def export_customers_filter(start: datetime, end: datetime) -> Dict[str, Any]:
    return {'role': 'customer', **created_between(start, end)}


EXPORT_CUSTOMER_PROJECTION = {'password': 0}
