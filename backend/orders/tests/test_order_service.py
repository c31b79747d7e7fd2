import time
from datetime import timedelta
from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
from django.conf import settings
from django.db import OperationalError, connection
from django.db.models import QuerySet
from django.utils import timezone

from canteen_backend.celery import app as celery_app
from canteen_backend.exceptions import (
    AlreadyTerminalError,
    IncompleteDeliveryError,
    IndexOutOfRangeError,
    InvalidStateError,
    NotFoundError,
    OrderValidationError,
    TransientStoreError,
)
from canteen_backend.utils.device_identity import normalize
from orders.models import Order
from notifications.dispatcher import get_dispatcher
from orders.services import OrderService


class RecordingTransport:
    def __init__(self):
        self.events = []

    def emit(self, event, payload):
        self.events.append((event, payload))


def assert_delivered_at_matches_status(order):
    order.refresh_from_db()
    assert (order.delivered_at is not None) == (order.order_status == Order.OrderStatus.DELIVERED)


@pytest.mark.django_db
class TestCreateOrder:
    """Order creation: validation, identifiers and the one-time price snapshot."""

    def test_creates_placed_order_owned_by_device(self, order_factory):
        order = order_factory(device_token="abc")

        assert order.order_status == Order.OrderStatus.PLACED
        assert order.device_owner == normalize("abc")
        assert order.bill_reference.startswith("BILL-")
        assert len(order.lookup_token) == 32
        assert order.delivered_at is None
        assert [item.position for item in order.items.all()] == [0]

    def test_identifiers_are_unique(self, order_factory):
        first, second = order_factory(), order_factory()

        assert first.bill_reference != second.bill_reference
        assert first.lookup_token != second.lookup_token

    def test_bill_reference_collision_is_retried(self, order_factory):
        existing = order_factory()
        references = iter([existing.bill_reference, "BILL-20240501-000042"])

        with patch("orders.services.order_service.generate_bill_reference", lambda now: next(references)):
            order = order_factory()

        assert order.bill_reference == "BILL-20240501-000042"

    def test_total_amount_is_the_submitted_snapshot(self, order_factory):
        order = order_factory(total_amount=Decimal("25"))

        assert order.total_amount == Decimal("25")

    def test_payment_info_is_recorded(self, order_factory):
        order = order_factory(payment_status="PAID")

        assert order.payment_status == Order.PaymentStatus.PAID
        assert order.payment_method == Order.PaymentMethod.RAZORPAY
        assert order.payment_id == "pay_test"

    def test_catalog_items_are_priced_at_creation(self, order_factory, menu_item_factory, campaign_factory):
        tea = menu_item_factory(name="Tea", price="100")
        campaign = campaign_factory(items=[tea], discount_percent="20")

        order = order_factory(items=[{"item_id": str(tea.pk), "quantity": 2}], total_amount=Decimal("160"))
        item = order.items.get()

        assert item.name == "Tea"
        assert item.unit_price == Decimal("80")
        assert item.original_price == Decimal("100")
        assert item.discount_percent == Decimal("20")

        # Later campaign and catalog changes leave the snapshot alone.
        campaign.delete()
        tea.price = Decimal("500")
        tea.save()
        item.refresh_from_db()
        assert item.unit_price == Decimal("80")

    def test_unknown_catalog_item_is_not_found(self, order_factory):
        with pytest.raises(NotFoundError):
            order_factory(items=[{"item_id": "999999", "quantity": 1}], total_amount=Decimal("10"))
        with pytest.raises(NotFoundError):
            order_factory(items=[{"item_id": "not-a-pk", "quantity": 1}], total_amount=Decimal("10"))

    @pytest.mark.parametrize("device_token", [None, ""])
    def test_device_token_is_required(self, order_factory, device_token):
        with pytest.raises(OrderValidationError):
            order_factory(device_token=device_token)

    def test_empty_item_list_is_rejected(self):
        with pytest.raises(OrderValidationError):
            OrderService.create_order([], Decimal("0"), "Now", {}, "abc")

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True])
    def test_quantity_must_be_a_positive_whole_number(self, quantity):
        with pytest.raises(OrderValidationError):
            OrderService.create_order(
                [{"name": "Tea", "quantity": quantity, "unit_price": 10}], Decimal("10"), "Now", {}, "abc"
            )

    def test_unsupported_payment_method_is_rejected(self):
        with pytest.raises(OrderValidationError):
            OrderService.create_order(
                [{"name": "Tea", "quantity": 1, "unit_price": 10}], Decimal("10"), "Now", {"method": "CASH"}, "abc"
            )

    @pytest.mark.parametrize(
        "collection_time, delay",
        [("Now", 0), ("5 minutes", 2), ("10 minutes", 5), ("15 minutes", 10), ("Later", 10)],
    )
    def test_qr_visibility_follows_collection_time(self, order_factory, collection_time, delay):
        now = timezone.now()
        order = order_factory(collection_time=collection_time, now=now)

        assert order.qr_visible_at == now + timedelta(minutes=delay)

    def test_store_failure_is_transient(self):
        with patch.object(Order.objects, "create", side_effect=OperationalError("down")):
            with pytest.raises(TransientStoreError):
                OrderService.create_order(
                    [{"name": "Tea", "quantity": 1, "unit_price": 10}], Decimal("10"), "Now", {}, "abc"
                )


@pytest.mark.django_db
class TestTransitions:
    """Status state machine and its guards."""

    @pytest.fixture
    def order(self, order_factory):
        return order_factory(
            items=[
                {"name": "Tea", "quantity": 2, "unit_price": Decimal("10")},
                {"name": "Vada", "quantity": 1, "unit_price": Decimal("15")},
            ]
        )

    def test_every_transition_locks_the_bill_row(self, order):
        locked = []
        select_for_update = QuerySet.select_for_update

        def record(queryset, *args, **kwargs):
            locked.append((queryset.model, connection.in_atomic_block))
            return select_for_update(queryset, *args, **kwargs)

        with patch.object(QuerySet, "select_for_update", autospec=True, side_effect=record):
            OrderService.mark_preparing(order.bill_reference)
            OrderService.mark_ready(order.bill_reference)
            OrderService.mark_item_delivered(order.bill_reference, 0)
            OrderService.mark_item_delivered(order.bill_reference, 1)
            OrderService.mark_delivered(order.bill_reference)

        assert locked == [(Order, True)] * 5

    def test_mark_preparing_then_ready(self, order):
        assert OrderService.mark_preparing(order.bill_reference).order_status == Order.OrderStatus.PREPARING
        assert OrderService.mark_ready(order.bill_reference).order_status == Order.OrderStatus.READY

    def test_ready_may_skip_preparing(self, order):
        assert OrderService.mark_ready(order.bill_reference).order_status == Order.OrderStatus.READY

    def test_mark_preparing_only_from_placed(self, order):
        OrderService.mark_preparing(order.bill_reference)
        with pytest.raises(InvalidStateError):
            OrderService.mark_preparing(order.bill_reference)

        OrderService.mark_ready(order.bill_reference)
        with pytest.raises(InvalidStateError):
            OrderService.mark_preparing(order.bill_reference)

    def test_item_delivery_requires_ready(self, order):
        with pytest.raises(InvalidStateError):
            OrderService.mark_item_delivered(order.bill_reference, 0)

    def test_item_index_must_exist(self, order):
        OrderService.mark_ready(order.bill_reference)
        for index in (2, -1, "0"):
            with pytest.raises(IndexOutOfRangeError):
                OrderService.mark_item_delivered(order.bill_reference, index)

    def test_item_delivery_is_idempotent(self, order):
        OrderService.mark_ready(order.bill_reference)
        first_time = timezone.now() - timedelta(minutes=3)

        OrderService.mark_item_delivered(order.bill_reference, 0, now=first_time)
        result = OrderService.mark_item_delivered(order.bill_reference, 0)

        item = order.items.get(position=0)
        assert item.delivered is True
        assert item.delivered_at == first_time
        assert result.order_status == Order.OrderStatus.READY

    def test_mark_delivered_requires_ready(self, order):
        with pytest.raises(InvalidStateError):
            OrderService.mark_delivered(order.bill_reference)

    def test_mark_delivered_before_any_item_is_incomplete(self, order):
        OrderService.mark_ready(order.bill_reference)

        with pytest.raises(IncompleteDeliveryError) as excinfo:
            OrderService.mark_delivered(order.bill_reference)

        assert excinfo.value.details["undelivered_items"] == [0, 1]
        assert_delivered_at_matches_status(order)

    def test_mark_delivered_with_one_item_left_is_incomplete(self, order):
        OrderService.mark_ready(order.bill_reference)
        OrderService.mark_item_delivered(order.bill_reference, 1)

        with pytest.raises(IncompleteDeliveryError):
            OrderService.mark_delivered(order.bill_reference)

    def test_mark_delivered_once_every_item_is_delivered(self, order):
        OrderService.mark_ready(order.bill_reference)
        OrderService.mark_item_delivered(order.bill_reference, 0)
        OrderService.mark_item_delivered(order.bill_reference, 1)

        delivered = OrderService.mark_delivered(order.bill_reference)

        assert delivered.order_status == Order.OrderStatus.DELIVERED
        assert delivered.delivered_at is not None
        assert_delivered_at_matches_status(order)

    def test_every_mutation_fails_once_delivered(self, order):
        OrderService.mark_ready(order.bill_reference)
        OrderService.mark_item_delivered(order.bill_reference, 0)
        OrderService.mark_item_delivered(order.bill_reference, 1)
        OrderService.mark_delivered(order.bill_reference)
        delivered_at = Order.objects.get(pk=order.pk).delivered_at

        for action in (
            OrderService.mark_preparing,
            OrderService.mark_ready,
            OrderService.mark_delivered,
            lambda bill: OrderService.mark_item_delivered(bill, 0),
        ):
            with pytest.raises(AlreadyTerminalError):
                action(order.bill_reference)

        assert Order.objects.get(pk=order.pk).delivered_at == delivered_at

    def test_unknown_bill_reference(self):
        with pytest.raises(NotFoundError):
            OrderService.mark_ready("BILL-00000000-000000")

    def test_invariant_holds_after_each_transition(self, order):
        assert_delivered_at_matches_status(order)
        OrderService.mark_preparing(order.bill_reference)
        assert_delivered_at_matches_status(order)
        OrderService.mark_ready(order.bill_reference)
        assert_delivered_at_matches_status(order)
        OrderService.mark_item_delivered(order.bill_reference, 0)
        OrderService.mark_item_delivered(order.bill_reference, 1)
        assert_delivered_at_matches_status(order)
        OrderService.mark_delivered(order.bill_reference)
        assert_delivered_at_matches_status(order)


@pytest.mark.django_db
class TestStatusNotifications:
    """Committed status changes reach the owning device's live session."""

    def test_tea_scenario(self, order_factory, session_registry, django_capture_on_commit_callbacks):
        transport = RecordingTransport()
        session_registry.register_session("abc", transport)
        order = order_factory(
            items=[{"name": "Tea", "quantity": 2, "unit_price": Decimal("10")}],
            total_amount=Decimal("20"),
            device_token="abc",
        )
        assert order.order_status == Order.OrderStatus.PLACED
        assert order.device_owner == normalize("abc")

        with django_capture_on_commit_callbacks(execute=True):
            ready = OrderService.mark_ready(order.bill_reference)
        assert ready.order_status == Order.OrderStatus.READY
        assert transport.events == [
            (
                "order_status_update",
                {
                    "bill_reference": order.bill_reference,
                    "new_status": "READY",
                    "message": f"Your order {order.bill_reference} is ready for pickup!",
                },
            )
        ]

        with django_capture_on_commit_callbacks(execute=True):
            OrderService.mark_item_delivered(order.bill_reference, 0)
        assert order.items.get(position=0).delivered is True
        assert len(transport.events) == 1

        with django_capture_on_commit_callbacks(execute=True):
            delivered = OrderService.mark_delivered(order.bill_reference)
        assert delivered.order_status == Order.OrderStatus.DELIVERED
        assert delivered.delivered_at is not None
        assert [payload["new_status"] for _, payload in transport.events] == ["READY", "DELIVERED"]

    def test_notification_waits_for_commit(self, order_factory, session_registry, django_capture_on_commit_callbacks):
        transport = RecordingTransport()
        session_registry.register_session("abc", transport)
        order = order_factory(device_token="abc")

        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            OrderService.mark_preparing(order.bill_reference)

        assert transport.events == []
        assert len(callbacks) == 1

    def test_ready_on_ready_order_sends_nothing(self, order_factory, session_registry, django_capture_on_commit_callbacks):
        transport = RecordingTransport()
        session_registry.register_session("abc", transport)
        order = order_factory(device_token="abc")
        OrderService.mark_ready(order.bill_reference)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            OrderService.mark_ready(order.bill_reference)

        assert callbacks == []

    def test_failing_listener_does_not_fail_transition(self, order_factory, django_capture_on_commit_callbacks):
        order = order_factory()

        with patch("notifications.signals.get_dispatcher") as dispatcher_getter:
            dispatcher_getter.return_value.dispatch.side_effect = RuntimeError("boom")
            with django_capture_on_commit_callbacks(execute=True):
                result = OrderService.mark_ready(order.bill_reference)

        assert result.order_status == Order.OrderStatus.READY
        dispatcher_getter.return_value.dispatch.assert_called_once()

    def test_slow_push_provider_does_not_hold_transition(self, order_factory, django_capture_on_commit_callbacks):
        get_dispatcher().register_push_token("abc", "fcm-token")
        order = order_factory(device_token="abc")
        push_client = Mock()
        push_client.send.side_effect = lambda *args, **kwargs: time.sleep(2)
        celery_app.conf.task_always_eager = settings.CELERY_TASK_ALWAYS_EAGER

        started = time.monotonic()
        with patch("notifications.tasks.get_push_client", return_value=push_client):
            with django_capture_on_commit_callbacks(execute=True):
                result = OrderService.mark_ready(order.bill_reference)
        elapsed = time.monotonic() - started

        assert result.order_status == Order.OrderStatus.READY
        push_client.send.assert_not_called()
        assert elapsed < 1


@pytest.mark.django_db
class TestReads:
    def test_orders_for_device_newest_first(self, order_factory):
        older = order_factory(device_token="abc")
        newer = order_factory(device_token="abc")
        order_factory(device_token="someone-else")

        orders = OrderService.get_orders_for_device("abc")

        assert [order.pk for order in orders] == [newer.pk, older.pk]

    def test_device_lookup_accepts_the_normalized_id(self, order_factory):
        order = order_factory(device_token="abc")

        assert OrderService.get_orders_for_device(normalize("abc"))[0].pk == order.pk

    def test_lookup_token(self, order_factory):
        order = order_factory()

        assert OrderService.get_order_by_lookup_token(order.lookup_token).pk == order.pk
        with pytest.raises(NotFoundError):
            OrderService.get_order_by_lookup_token("nope")

    def test_kitchen_queue(self, order_factory):
        placed = order_factory()
        preparing = order_factory()
        OrderService.mark_preparing(preparing.bill_reference)
        ready = order_factory()
        OrderService.mark_ready(ready.bill_reference)
        order_factory(payment_status="PENDING")

        queue = OrderService.active_kitchen_orders()

        assert [order.pk for order in queue] == [placed.pk, preparing.pk]
