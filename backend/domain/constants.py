"""
Domain constants used across services/routers.
"""
from decimal import Decimal

# Money is stored with two decimal places
MONEY_QUANT = Decimal("0.01")

# Listing pagination bounds
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
