# Analytics package initialization
# Time windows, aggregation pipelines, metric assembly and the request-facing service

from .time_window import TimeWindow, MonthBounds, resolve_window, month_bounds
from .engine import AggregationEngine
from .service import AnalyticsService

__all__ = ['TimeWindow', 'MonthBounds', 'resolve_window', 'month_bounds', 'AggregationEngine', 'AnalyticsService']
