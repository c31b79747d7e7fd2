from rest_framework import serializers

from .models import MenuItem, ServiceHours


class MenuItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = MenuItem
        fields = ["id", "name", "price", "category", "stock", "image_url", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]


class PublicMenuItemSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    category = serializers.CharField()
    stock = serializers.IntegerField()
    image_url = serializers.CharField(allow_blank=True)
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    original_price = serializers.DecimalField(max_digits=10, decimal_places=2)
    is_offer = serializers.BooleanField()
    discount_percent = serializers.DecimalField(max_digits=5, decimal_places=2)


class ServiceHoursSerializer(serializers.ModelSerializer):
    class Meta:
        model = ServiceHours
        fields = ["breakfast_start", "breakfast_end", "lunch_start", "lunch_end", "updated_at"]
        read_only_fields = ["updated_at"]


class CanteenStatusSerializer(serializers.Serializer):
    is_open = serializers.BooleanField(required=False)
