"""
User Model
Read view of the marketplace user documents
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"
    ADMIN = "admin"


@dataclass
class User:
    """User document model for MongoDB"""
    email: str
    first_name: str
    last_name: str
    role: UserRole = UserRole.CUSTOMER
    created_at: Optional[datetime] = None
    _id: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def to_public_dict(self) -> dict:
        """Return public user info (no sensitive data)"""
        return {
            '_id': str(self._id) if self._id else None,
            'email': self.email,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'fullName': self.full_name,
            'role': self.role.value,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'User':
        """Create User instance from MongoDB document"""
        role = data.get('role', UserRole.CUSTOMER)
        if isinstance(role, str):
            role = UserRole(role)

        return cls(
            _id=str(data.get('_id')) if data.get('_id') else None,
            email=data.get('email', ''),
            first_name=data.get('firstName', ''),
            last_name=data.get('lastName', ''),
            role=role,
            created_at=data.get('createdAt'),
        )
