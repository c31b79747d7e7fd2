import logging
from datetime import date
from decimal import Decimal

from canteen_backend.exceptions import translate_store_errors
from canteen_backend.utils.clock import local_day_bounds
from orders.models import Order, OrderItem

logger = logging.getLogger(__name__)


class RevenueService:
    """Read-side projections over paid orders."""

    @staticmethod
    @translate_store_errors
    def daily_revenue(day: date) -> dict:
        """
        Totals for paid orders created on `day` (service-local calendar day).

        Per-product figures use the unit price snapshotted on each order item,
        keyed by item name, in the order products were first sold that day.
        """
        start, end = local_day_bounds(day)
        orders = Order.objects.filter(
            created_at__gte=start,
            created_at__lte=end,
            payment_status=Order.PaymentStatus.PAID,
        )

        totals = orders.values_list("total_amount", flat=True)
        total_revenue = sum(totals, Decimal("0"))

        products = {}
        items = (
            OrderItem.objects.filter(order__in=orders)
            .order_by("order__created_at", "position")
            .values_list("name", "quantity", "unit_price")
        )
        for name, quantity, unit_price in items:
            entry = products.setdefault(name, {"name": name, "quantity": 0, "revenue": Decimal("0")})
            entry["quantity"] += quantity
            entry["revenue"] += unit_price * quantity

        summary = {
            "date": day,
            "total_orders": len(totals),
            "total_revenue": total_revenue,
            "products": list(products.values()),
        }
        logger.debug(f"Daily revenue for {day}: {summary['total_orders']} orders, {total_revenue}")
        return summary
