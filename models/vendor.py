"""
Vendor Model
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional


@dataclass
class Vendor:
    business_name: str
    _id: Optional[str] = None

    def to_public_dict(self) -> dict:
        return {
            '_id': str(self._id) if self._id else None,
            'businessName': self.business_name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Vendor':
        return cls(
            _id=str(data.get('_id')) if data.get('_id') else None,
            business_name=data.get('businessName', ''),
        )
