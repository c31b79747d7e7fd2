"""
Orders services:
- OrderService: order creation and the status state machine
- RevenueService: daily revenue and per-product sales
"""

from .order_service import OrderService
from .revenue_service import RevenueService

__all__ = [
    "OrderService",
    "RevenueService",
]
