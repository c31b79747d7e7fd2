import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from canteen_backend.exceptions import (
    AlreadyTerminalError,
    IncompleteDeliveryError,
    IndexOutOfRangeError,
    InvalidStateError,
    NotFoundError,
    OrderValidationError,
    translate_store_errors,
)
from canteen_backend.utils import device_identity
from menu.models import MenuItem
from offers.services import PricingService
from orders.identifiers import generate_bill_reference, generate_lookup_token, qr_visible_at
from orders.models import Order, OrderItem
from orders.signals import order_status_changed

logger = logging.getLogger(__name__)

MAX_REFERENCE_ATTEMPTS = 5
KITCHEN_QUEUE_LIMIT = 100


class OrderService:
    """
    Order ledger: creation with a one-time price snapshot, the status state
    machine and the read paths used by students and staff.

    Every transition loads the order with select_for_update inside one
    transaction, so concurrent staff actions on the same bill are serialized
    while different bills never contend. Status changes are announced through
    `order_status_changed` only after the transaction commits.
    """

    # order_status -> statuses reachable through a notifying transition
    VALID_STATUS_TRANSITIONS = {
        Order.OrderStatus.PLACED: [Order.OrderStatus.PREPARING, Order.OrderStatus.READY],
        Order.OrderStatus.PREPARING: [Order.OrderStatus.READY],
        Order.OrderStatus.READY: [Order.OrderStatus.DELIVERED],
        Order.OrderStatus.DELIVERED: [],
    }

    # --- Creation ---

    @staticmethod
    @translate_store_errors
    def create_order(
        items: List[dict],
        total_amount,
        collection_time: str,
        payment_info: Optional[dict] = None,
        device_token: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Order:
        """
        Create an order in PLACED, owned by the normalized device token.

        Each item is a dict with `quantity` plus either an `item_id` from the
        catalog (priced now through PricingService) or a `name` and
        `unit_price` supplied by the caller. Prices are never re-resolved after
        this call.
        """
        now = now or timezone.now()
        device_owner = device_identity.normalize(device_token)
        lines = OrderService._validate_lines(items)
        total = OrderService._validate_amount(total_amount, "total_amount")
        payment = OrderService._validate_payment(payment_info)
        snapshot = OrderService._snapshot_prices(lines, now)

        for attempt in range(1, MAX_REFERENCE_ATTEMPTS + 1):
            try:
                with transaction.atomic():
                    order = Order.objects.create(
                        bill_reference=generate_bill_reference(now),
                        lookup_token=generate_lookup_token(),
                        total_amount=total,
                        collection_time=collection_time or "",
                        qr_visible_at=qr_visible_at(collection_time, now),
                        payment_method=payment["method"],
                        payment_status=payment["status"],
                        payment_id=payment["payment_id"],
                        device_owner=device_owner,
                    )
                    OrderItem.objects.bulk_create(
                        [OrderItem(order=order, position=position, **line) for position, line in enumerate(snapshot)]
                    )
                break
            except IntegrityError:
                if attempt == MAX_REFERENCE_ATTEMPTS:
                    raise
                logger.warning(f"Bill reference collision, retrying (attempt {attempt})")

        logger.info(
            f"Order {order.bill_reference} created with {len(snapshot)} item(s), "
            f"total {order.total_amount}, payment {order.payment_status}"
        )
        return order

    @staticmethod
    def _validate_lines(items) -> List[dict]:
        if not isinstance(items, (list, tuple)) or not items:
            raise OrderValidationError("An order needs at least one item.")

        lines = []
        for index, raw in enumerate(items):
            if not isinstance(raw, dict):
                raise OrderValidationError(f"Item {index} is malformed.", index=index)

            quantity = raw.get("quantity")
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                raise OrderValidationError(f"Item {index} needs a positive whole quantity.", index=index)

            item_id = raw.get("item_id")
            name = (raw.get("name") or "").strip()
            if item_id in (None, ""):
                if not name:
                    raise OrderValidationError(f"Item {index} needs a name or an item_id.", index=index)
                unit_price = OrderService._validate_amount(raw.get("unit_price"), f"items[{index}].unit_price")
                lines.append({"item_id": "", "name": name, "quantity": quantity, "unit_price": unit_price})
            else:
                lines.append({"item_id": str(item_id), "name": name, "quantity": quantity})
        return lines

    @staticmethod
    def _validate_amount(value, field) -> Decimal:
        if value is None or isinstance(value, bool):
            raise OrderValidationError(f"{field} is required.", field=field)
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise OrderValidationError(f"{field} must be a number.", field=field)
        if not amount.is_finite() or amount < 0:
            raise OrderValidationError(f"{field} must not be negative.", field=field)
        return amount

    @staticmethod
    def _validate_payment(payment_info) -> dict:
        payment_info = payment_info or {}
        if not isinstance(payment_info, dict):
            raise OrderValidationError("payment_info is malformed.")

        method = payment_info.get("method") or Order.PaymentMethod.RAZORPAY
        if method not in Order.PaymentMethod.values:
            raise OrderValidationError(f"Unsupported payment method {method}.", field="payment_info.method")

        status = payment_info.get("status") or Order.PaymentStatus.PENDING
        if status not in Order.PaymentStatus.values:
            raise OrderValidationError(f"Unknown payment status {status}.", field="payment_info.status")

        return {"method": method, "status": status, "payment_id": payment_info.get("payment_id") or ""}

    @staticmethod
    def _snapshot_prices(lines: List[dict], now: datetime) -> List[dict]:
        """Freeze unit, original and discount values for every line."""
        catalog = OrderService._load_catalog([line["item_id"] for line in lines if line["item_id"]])
        quotes = PricingService.resolve_prices(catalog.values(), now) if catalog else {}

        snapshot = []
        for line in lines:
            if not line["item_id"]:
                snapshot.append(
                    {
                        **line,
                        "original_price": line["unit_price"],
                        "discount_percent": Decimal("0"),
                    }
                )
                continue

            menu_item = catalog[line["item_id"]]
            quote = quotes[menu_item.pk]
            snapshot.append(
                {
                    "item_id": line["item_id"],
                    "name": line["name"] or menu_item.name,
                    "quantity": line["quantity"],
                    "unit_price": quote.price,
                    "original_price": quote.original_price,
                    "discount_percent": quote.discount_percent,
                }
            )
        return snapshot

    @staticmethod
    def _load_catalog(item_ids) -> dict:
        if not item_ids:
            return {}
        pks = {}
        for item_id in item_ids:
            try:
                pks[item_id] = int(item_id)
            except (TypeError, ValueError):
                raise NotFoundError(f"Menu item {item_id} not found.", item_id=item_id)

        found = MenuItem.objects.in_bulk(set(pks.values()))
        catalog = {}
        for item_id, pk in pks.items():
            if pk not in found:
                raise NotFoundError(f"Menu item {item_id} not found.", item_id=item_id)
            catalog[item_id] = found[pk]
        return catalog

    # --- Transitions ---

    @staticmethod
    def _lock(bill_reference: str) -> Order:
        try:
            return Order.objects.select_for_update().get(bill_reference=bill_reference)
        except Order.DoesNotExist:
            raise NotFoundError(f"Order {bill_reference} not found.", bill_reference=bill_reference)

    @staticmethod
    def _ensure_not_terminal(order: Order):
        if order.is_terminal:
            raise AlreadyTerminalError(
                f"Order {order.bill_reference} has already been delivered.",
                bill_reference=order.bill_reference,
            )

    @staticmethod
    def _set_status(order: Order, new_status: str, **fields):
        previous = order.order_status
        if new_status not in OrderService.VALID_STATUS_TRANSITIONS[previous]:
            raise InvalidStateError(
                f"Order {order.bill_reference} cannot move from {previous} to {new_status}.",
                bill_reference=order.bill_reference,
                order_status=previous,
            )

        order.order_status = new_status
        for name, value in fields.items():
            setattr(order, name, value)
        order.save(update_fields=["order_status", "updated_at", *fields])
        logger.info(f"Order {order.bill_reference}: {previous} -> {new_status}")

        transaction.on_commit(lambda: OrderService._announce(order, previous))

    @staticmethod
    def _announce(order: Order, previous_status: str):
        for receiver, result in order_status_changed.send_robust(
            sender=Order, order=order, previous_status=previous_status
        ):
            if isinstance(result, Exception):
                logger.error(
                    f"Status listener {receiver} failed for order {order.bill_reference}: {result}",
                    exc_info=(type(result), result, result.__traceback__),
                )

    @staticmethod
    @translate_store_errors
    @transaction.atomic
    def mark_preparing(bill_reference: str) -> Order:
        order = OrderService._lock(bill_reference)
        OrderService._ensure_not_terminal(order)
        OrderService._set_status(order, Order.OrderStatus.PREPARING)
        return order

    @staticmethod
    @translate_store_errors
    @transaction.atomic
    def mark_ready(bill_reference: str) -> Order:
        """
        Move the order to READY from PLACED or PREPARING. Calling it on an
        order that is already READY changes nothing and sends no event.
        """
        order = OrderService._lock(bill_reference)
        OrderService._ensure_not_terminal(order)
        if order.order_status == Order.OrderStatus.READY:
            return order
        OrderService._set_status(order, Order.OrderStatus.READY)
        return order

    @staticmethod
    @translate_store_errors
    @transaction.atomic
    def mark_item_delivered(bill_reference: str, item_index, now: Optional[datetime] = None) -> Order:
        """
        Confirm hand-over of one item of a READY order.

        Idempotent: an item that is already delivered keeps its original
        delivered_at. The order status does not change, so nothing is announced.
        """
        order = OrderService._lock(bill_reference)
        OrderService._ensure_not_terminal(order)
        if order.order_status != Order.OrderStatus.READY:
            raise InvalidStateError(
                f"Items of order {bill_reference} can only be delivered once it is READY.",
                bill_reference=bill_reference,
                order_status=order.order_status,
            )

        items = list(order.items.order_by("position"))
        if isinstance(item_index, bool) or not isinstance(item_index, int) or not 0 <= item_index < len(items):
            raise IndexOutOfRangeError(
                f"Order {bill_reference} has no item at index {item_index}.",
                bill_reference=bill_reference,
                item_count=len(items),
            )

        item = items[item_index]
        if not item.delivered:
            item.delivered = True
            item.delivered_at = now or timezone.now()
            item.save(update_fields=["delivered", "delivered_at"])
            logger.info(f"Order {bill_reference}: item {item_index} ({item.name}) delivered")
        return order

    @staticmethod
    @translate_store_errors
    @transaction.atomic
    def mark_delivered(bill_reference: str, now: Optional[datetime] = None) -> Order:
        """Close the whole bill once every item has been handed over."""
        order = OrderService._lock(bill_reference)
        OrderService._ensure_not_terminal(order)
        if order.order_status != Order.OrderStatus.READY:
            raise InvalidStateError(
                f"Order {bill_reference} must be READY before it is delivered.",
                bill_reference=bill_reference,
                order_status=order.order_status,
            )

        pending = list(order.items.filter(delivered=False).order_by("position").values_list("position", flat=True))
        if pending:
            raise IncompleteDeliveryError(
                f"Order {bill_reference} still has {len(pending)} undelivered item(s).",
                bill_reference=bill_reference,
                undelivered_items=pending,
            )

        OrderService._set_status(order, Order.OrderStatus.DELIVERED, delivered_at=now or timezone.now())
        return order

    # --- Reads ---

    @staticmethod
    @translate_store_errors
    def get_orders_for_device(device_token: str) -> List[Order]:
        """The device's orders, newest first."""
        device_owner = device_identity.normalize(device_token)
        return list(
            Order.objects.filter(device_owner=device_owner).prefetch_related("items").order_by("-created_at")
        )

    @staticmethod
    @translate_store_errors
    def get_order_by_lookup_token(lookup_token: str) -> Order:
        if not lookup_token:
            raise NotFoundError("Order not found.")
        try:
            return Order.objects.prefetch_related("items").get(lookup_token=lookup_token)
        except Order.DoesNotExist:
            raise NotFoundError("Order not found.")

    @staticmethod
    @translate_store_errors
    def get_order(bill_reference: str) -> Order:
        try:
            return Order.objects.prefetch_related("items").get(bill_reference=bill_reference)
        except Order.DoesNotExist:
            raise NotFoundError(f"Order {bill_reference} not found.", bill_reference=bill_reference)

    @staticmethod
    @translate_store_errors
    def active_kitchen_orders(limit: int = KITCHEN_QUEUE_LIMIT) -> List[Order]:
        """Paid orders the kitchen still has to prepare, oldest first."""
        return list(
            Order.objects.filter(
                payment_status=Order.PaymentStatus.PAID,
                order_status__in=[Order.OrderStatus.PLACED, Order.OrderStatus.PREPARING],
            )
            .prefetch_related("items")
            .order_by("created_at")[:limit]
        )
