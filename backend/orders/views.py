import logging
from datetime import date

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from canteen_backend.permissions import IsCanteenAdmin, IsCanteenStaff
from .models import Order
from .serializers import (
    CreateOrderSerializer,
    DailyRevenueSerializer,
    OrderSerializer,
    PublicOrderStatusSerializer,
)
from .services import OrderService, RevenueService

logger = logging.getLogger(__name__)


class StudentOrderView(APIView):
    """
    Device-owned orders. No login: the device id is the ownership key.

    GET  ?deviceId=<token>  the device's orders, newest first
    POST                    create an order after checkout
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request: Request) -> Response:
        device_id = request.query_params.get("deviceId") or request.query_params.get("device_id")
        if not device_id:
            raise ValidationError({"deviceId": "This query parameter is required."})
        orders = OrderService.get_orders_for_device(device_id)
        return Response(OrderSerializer(orders, many=True).data)

    def post(self, request: Request) -> Response:
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        order = OrderService.create_order(
            items=[dict(line) for line in data["items"]],
            total_amount=data["total_amount"],
            collection_time=data.get("collection_time"),
            payment_info=dict(data.get("payment_info") or {}),
            device_token=data["device_id"],
        )
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)


class PublicOrderStatusView(APIView):
    """Unauthenticated status page data for whoever holds the lookup token."""

    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request: Request, lookup_token: str) -> Response:
        order = OrderService.get_order_by_lookup_token(lookup_token)
        return Response(PublicOrderStatusSerializer(order).data)


class StaffOrderViewSet(viewsets.ViewSet):
    """
    Kitchen and counter actions, addressed by bill reference.

    Guard violations raised by OrderService surface through the project
    exception handler as 4xx responses.
    """

    permission_classes = [IsCanteenStaff]
    lookup_field = "bill_reference"
    lookup_value_regex = "[^/]+"

    def list(self, request: Request) -> Response:
        orders = OrderService.active_kitchen_orders()
        return Response(OrderSerializer(orders, many=True).data)

    def retrieve(self, request: Request, bill_reference=None) -> Response:
        return Response(OrderSerializer(OrderService.get_order(bill_reference)).data)

    @action(detail=True, methods=["post"], url_path="preparing")
    def preparing(self, request: Request, bill_reference=None) -> Response:
        order = OrderService.mark_preparing(bill_reference)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="ready")
    def ready(self, request: Request, bill_reference=None) -> Response:
        order = OrderService.mark_ready(bill_reference)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path=r"items/(?P<item_index>\d+)/delivered")
    def deliver_item(self, request: Request, bill_reference=None, item_index=None) -> Response:
        order = OrderService.mark_item_delivered(bill_reference, int(item_index))
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"], url_path="delivered")
    def delivered(self, request: Request, bill_reference=None) -> Response:
        order = OrderService.mark_delivered(bill_reference)
        return Response(OrderSerializer(order).data)


class AdminOrderListView(APIView):
    """Every order, newest first, for the admin dashboard."""

    permission_classes = [IsCanteenAdmin]

    def get(self, request: Request) -> Response:
        orders = Order.objects.prefetch_related("items").order_by("-created_at")
        return Response(OrderSerializer(orders, many=True).data)


class DailyRevenueView(APIView):
    """GET ?date=YYYY-MM-DD: paid-order revenue and per-product sales for one local day."""

    permission_classes = [IsCanteenAdmin]

    def get(self, request: Request) -> Response:
        raw_date = request.query_params.get("date")
        if not raw_date:
            raise ValidationError({"date": "This query parameter is required."})
        try:
            day = date.fromisoformat(raw_date)
        except ValueError:
            raise ValidationError({"date": "Use the YYYY-MM-DD format."})

        summary = RevenueService.daily_revenue(day)
        return Response(DailyRevenueSerializer(summary).data)
