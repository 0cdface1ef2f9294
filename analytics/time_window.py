"""
Time windows for analytics queries
Maps range tokens (7d, 30d, 1m, 3m, ...) to concrete start/end bounds
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

DAY = 'day'
WEEK = 'week'
MONTH = 'month'


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime
    granularity: str
    range: str

    def to_dict(self) -> dict:
        return {
            'start': self.start,
            'end': self.end,
            'range': self.range,
            'granularity': self.granularity,
        }


@dataclass(frozen=True)
class RangeTable:
    """Recognized tokens mapped to (days back, grouping granularity)"""
    options: Dict[str, Tuple[int, str]]
    default: str

    def __contains__(self, token) -> bool:
        return token in self.options


SALES_RANGES = RangeTable(
    options={
        '7d': (7, DAY),
        '30d': (30, DAY),
        '90d': (90, DAY),
        '1y': (365, DAY),
    },
    default='30d',
)

FINANCIAL_RANGES = RangeTable(
    options={
        '1m': (30, DAY),
        '3m': (90, WEEK),
        '1y': (365, MONTH),
    },
    default='1y',
)

VENDOR_RANGES = RangeTable(
    options={
        '1m': (30, DAY),
        '3m': (90, DAY),
        '6m': (180, DAY),
    },
    default='3m',
)


def resolve_window(token: Optional[str], now: datetime, table: RangeTable = SALES_RANGES) -> TimeWindow:
    """
    Resolve a range token against `now`.
    Absent or unrecognized tokens fall back to the table default; the
    returned window's `range` names the token actually applied.
    """
    if token not in table:
        token = table.default

    days, granularity = table.options[token]
    return TimeWindow(
        start=now - timedelta(days=days),
        end=now,
        granularity=granularity,
        range=token,
    )


def trailing_days(now: datetime, days: int) -> datetime:
    return now - timedelta(days=days)


@dataclass(frozen=True)
class MonthBounds:
    start_of_month: datetime
    start_of_last_month: datetime
    # Last representable instant of the previous month (millisecond precision in MongoDB)
    end_of_last_month: datetime


def month_bounds(now: datetime) -> MonthBounds:
    start_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start_of_month.month == 1:
        start_of_last_month = start_of_month.replace(year=start_of_month.year - 1, month=12)
    else:
        start_of_last_month = start_of_month.replace(month=start_of_month.month - 1)

    return MonthBounds(
        start_of_month=start_of_month,
        start_of_last_month=start_of_last_month,
        end_of_last_month=start_of_month - timedelta(milliseconds=1),
    )
