"""
Custom exception classes for storage operations.
"""


class StoreError(Exception):
    """Raised when a catalog or order store cannot complete an operation."""
    pass


class IllegalTransitionError(StoreError):
    """Raised when an order status change would leave a terminal state."""
    pass
