"""
Domain enums.
"""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self is not OrderStatus.PENDING


class OwnerKind(str, Enum):
    STRUCTURED_ID = "id"
    LEGACY_NAME = "name"


class StorageBackend(str, Enum):
    SQL = "sql"
    MEMORY = "memory"
