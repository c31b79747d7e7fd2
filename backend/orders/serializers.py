from rest_framework import serializers

from .models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    index = serializers.IntegerField(source="position", read_only=True)
    total_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "index",
            "item_id",
            "name",
            "quantity",
            "unit_price",
            "original_price",
            "discount_percent",
            "total_price",
            "delivered",
            "delivered_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Full order as shown to its owner, the kitchen and the public status page."""

    items = OrderItemSerializer(many=True, read_only=True)
    status_url = serializers.CharField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "bill_reference",
            "lookup_token",
            "status_url",
            "order_status",
            "payment_status",
            "payment_method",
            "payment_id",
            "total_amount",
            "collection_time",
            "qr_visible_at",
            "items",
            "created_at",
            "updated_at",
            "delivered_at",
        ]
        read_only_fields = fields


class PublicOrderStatusSerializer(serializers.ModelSerializer):
    """What anyone holding the lookup token may see."""

    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "bill_reference",
            "order_status",
            "payment_status",
            "total_amount",
            "collection_time",
            "qr_visible_at",
            "items",
            "created_at",
            "delivered_at",
        ]
        read_only_fields = fields


class OrderLineInputSerializer(serializers.Serializer):
    item_id = serializers.CharField(required=False, allow_blank=True, max_length=64)
    name = serializers.CharField(required=False, allow_blank=True, max_length=150)
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)

    def validate(self, attrs):
        if not attrs.get("item_id") and not (attrs.get("name") and "unit_price" in attrs):
            raise serializers.ValidationError("Provide an item_id, or a name and unit_price.")
        return attrs


class PaymentInfoSerializer(serializers.Serializer):
    method = serializers.ChoiceField(choices=Order.PaymentMethod.choices, default=Order.PaymentMethod.RAZORPAY)
    status = serializers.ChoiceField(choices=Order.PaymentStatus.choices, default=Order.PaymentStatus.PENDING)
    payment_id = serializers.CharField(required=False, allow_blank=True, max_length=100)


class CreateOrderSerializer(serializers.Serializer):
    """Boundary contract for order creation; the ledger re-checks the invariants."""

    items = OrderLineInputSerializer(many=True, allow_empty=False)
    total_amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    collection_time = serializers.CharField(max_length=50, required=False, allow_blank=True, default="Now")
    payment_info = PaymentInfoSerializer(required=False)
    device_id = serializers.CharField(max_length=255)


class DailyRevenueProductSerializer(serializers.Serializer):
    name = serializers.CharField()
    quantity = serializers.IntegerField()
    revenue = serializers.DecimalField(max_digits=12, decimal_places=2)


class DailyRevenueSerializer(serializers.Serializer):
    date = serializers.DateField()
    total_orders = serializers.IntegerField()
    total_revenue = serializers.DecimalField(max_digits=12, decimal_places=2)
    products = DailyRevenueProductSerializer(many=True)
