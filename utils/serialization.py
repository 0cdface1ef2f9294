"""
JSON helpers for MongoDB documents
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from bson import ObjectId


def safe_json(obj: Any) -> Any:
    """Convert ObjectIds, datetimes and nested containers into JSON-friendly values"""
    if isinstance(obj, (str, int, float, bool)) or obj is None:
        return obj
    if isinstance(obj, ObjectId):
        return str(obj)
    if isinstance(obj, datetime):
        # pymongo hands back naive UTC datetimes unless tz_aware is set
        if obj.tzinfo is None:
            obj = obj.replace(tzinfo=timezone.utc)
        return obj.astimezone(timezone.utc).isoformat()
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {str(k): safe_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [safe_json(v) for v in obj]
    return str(obj)
