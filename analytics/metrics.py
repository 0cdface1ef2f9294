"""
Metrics Assembler
Turns raw facet results into the response payloads and derives the ratios
(growth, retention, vendor performance score).
"""

from __future__ import annotations
from typing import Dict, List, Optional

from config import ScoreCalibration
from analytics.pipelines import UNCATEGORIZED

PROFIT_NOTE = 'Profit calculations are estimated. Implement cost tracking for accurate profit analysis.'


def growth_rate(current: float, previous: float) -> float:
    """Period-over-period growth in percent; 0 when there is no previous period to compare"""
    if not previous:
        return 0
    return round((current - previous) / previous * 100, 2)


def retention_rate(active: int, total: int) -> float:
    if not total:
        return 0
    return round(active / total * 100, 2)


def performance_score(revenue: float, orders: int, average_order_value: float, active_products: int,
                      calibration: Optional[ScoreCalibration] = None) -> float:
    """Weighted vendor score: each input is scaled by its divisor and multiplied by its weight"""
    calibration = calibration or ScoreCalibration()
    values = (revenue or 0, orders or 0, average_order_value or 0, active_products or 0)
    return sum(
        weight * (value / divisor)
        for weight, value, divisor in zip(calibration.weights, values, calibration.divisors)
    )


def build_dashboard(revenue: Dict[str, float], orders: Dict[str, float], customers: Dict[str, int],
                    active_customers: int, inventory: Dict[str, int], top_selling: List[dict]) -> dict:
    this_month = revenue.get('thisMonth') or 0
    last_month = revenue.get('lastMonth') or 0
    total_customers = customers.get('total') or 0

    return {
        'revenue': {
            'total': revenue.get('total') or 0,
            'thisMonth': this_month,
            'lastMonth': last_month,
            'growth': growth_rate(this_month, last_month),
        },
        'orders': {
            'total': orders.get('total') or 0,
            'thisMonth': orders.get('thisMonth') or 0,
            'lastMonth': orders.get('lastMonth') or 0,
            'averageValue': orders.get('averageValue') or 0,
        },
        'customers': {
            'total': total_customers,
            'active': active_customers,
            'new': customers.get('new') or 0,
            'retention': retention_rate(active_customers, total_customers),
        },
        'products': {
            'total': inventory.get('total') or 0,
            'lowStock': inventory.get('lowStock') or 0,
            'outOfStock': inventory.get('outOfStock') or 0,
            'topSelling': [
                {
                    'productId': row.get('productId'),
                    'name': row.get('name') or '',
                    'sold': row.get('sold') or 0,
                    'revenue': row.get('revenue') or 0,
                }
                for row in top_selling
            ],
        },
    }


def build_category_rows(rows: List[dict]) -> List[dict]:
    # Prior-period comparison is not computed; growth stays 0 and is flagged unavailable
    return [
        {
            'category': row.get('category') or UNCATEGORIZED,
            'revenue': row.get('revenue') or 0,
            'units': row.get('units') or 0,
            'growth': 0,
            'growthAvailable': False,
        }
        for row in rows
    ]


def build_sales(daily: List[dict], top_products: List[dict], top_customers: List[dict],
                categories: List[dict]) -> dict:
    return {
        'dailySales': [
            {
                'date': row.get('date'),
                'revenue': row.get('revenue') or 0,
                'orders': row.get('orders') or 0,
                'customers': row.get('customers') or 0,
            }
            for row in daily
        ],
        'topProducts': [
            {
                'productId': row.get('productId'),
                'name': row.get('name') or '',
                'category': row.get('category') or UNCATEGORIZED,
                'unitsSold': row.get('unitsSold') or 0,
                'revenue': row.get('revenue') or 0,
            }
            for row in top_products
        ],
        'topCustomers': [
            {
                'customerId': row.get('customerId'),
                'name': (row.get('name') or '').strip(),
                'orders': row.get('orders') or 0,
                'totalSpent': row.get('totalSpent') or 0,
                'averageOrderValue': row.get('averageOrderValue') or 0,
            }
            for row in top_customers
        ],
        'salesByCategory': build_category_rows(categories),
    }


def build_vendor_rows(rows: List[dict], calibration: Optional[ScoreCalibration] = None) -> List[dict]:
    vendors = []
    for row in rows:
        revenue = row.get('totalRevenue') or 0
        orders = row.get('totalOrders') or 0
        aov = row.get('averageOrderValue') or 0
        active = row.get('activeProducts') or 0
        vendors.append({
            'vendorId': row.get('vendorId'),
            'vendorName': row.get('vendorName') or '',
            'totalRevenue': revenue,
            'totalOrders': orders,
            'averageOrderValue': aov,
            'totalProducts': row.get('totalProducts') or 0,
            'activeProducts': active,
            'performanceScore': performance_score(revenue, orders, aov, active, calibration),
        })
    return vendors


def build_financial(report_type: str, rows: List[dict]) -> dict:
    payload = {'reportType': report_type, 'data': rows}
    if report_type == 'profit':
        payload['note'] = PROFIT_NOTE
        payload['estimated'] = True
    return payload
