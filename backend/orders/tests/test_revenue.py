from datetime import datetime, time, timedelta
from decimal import Decimal

import pytest

from canteen_backend.utils.clock import service_timezone
from orders.models import Order
from orders.services import RevenueService


def move_to(order, day, clock):
    created = service_timezone().localize(datetime.combine(day, clock))
    Order.objects.filter(pk=order.pk).update(created_at=created)


@pytest.mark.django_db
class TestDailyRevenue:
    """Revenue over paid orders of one service-local calendar day."""

    def test_sums_paid_orders_and_products(self, order_factory, local_today):
        order_factory(
            items=[
                {"name": "Tea", "quantity": 2, "unit_price": Decimal("10")},
                {"name": "Samosa", "quantity": 1, "unit_price": Decimal("15")},
            ]
        )
        order_factory(items=[{"name": "Tea", "quantity": 3, "unit_price": Decimal("10")}])
        order_factory(items=[{"name": "Tea", "quantity": 5, "unit_price": Decimal("10")}], payment_status="FAILED")
        order_factory(items=[{"name": "Tea", "quantity": 5, "unit_price": Decimal("10")}], payment_status="PENDING")

        summary = RevenueService.daily_revenue(local_today)

        assert summary["total_orders"] == 2
        assert summary["total_revenue"] == Decimal("65")
        assert summary["products"] == [
            {"name": "Tea", "quantity": 5, "revenue": Decimal("50")},
            {"name": "Samosa", "quantity": 1, "revenue": Decimal("15")},
        ]

    def test_uses_snapshotted_unit_price(self, order_factory, menu_item_factory, campaign_factory, local_today):
        tea = menu_item_factory(name="Tea", price="100")
        campaign_factory(items=[tea], discount_percent="20")
        order_factory(items=[{"item_id": str(tea.pk), "quantity": 1}], total_amount=Decimal("80"))
        tea.price = Decimal("250")
        tea.save()

        summary = RevenueService.daily_revenue(local_today)

        assert summary["products"] == [{"name": "Tea", "quantity": 1, "revenue": Decimal("80")}]

    def test_day_bounds_are_inclusive_local_midnight_to_midnight(self, order_factory, local_today):
        first = order_factory(total_amount=Decimal("1"))
        last = order_factory(total_amount=Decimal("2"))
        before = order_factory(total_amount=Decimal("4"))
        after = order_factory(total_amount=Decimal("8"))
        move_to(first, local_today, time.min)
        move_to(last, local_today, time(23, 59, 59, 999000))
        move_to(before, local_today - timedelta(days=1), time(23, 59, 59, 999000))
        move_to(after, local_today + timedelta(days=1), time.min)

        summary = RevenueService.daily_revenue(local_today)

        assert summary["total_orders"] == 2
        assert summary["total_revenue"] == Decimal("3")

    def test_empty_day(self, local_today):
        summary = RevenueService.daily_revenue(local_today - timedelta(days=30))

        assert summary == {
            "date": local_today - timedelta(days=30),
            "total_orders": 0,
            "total_revenue": Decimal("0"),
            "products": [],
        }
