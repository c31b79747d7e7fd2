from rest_framework import serializers

from menu.models import MenuItem
from .models import Campaign


class CampaignSerializer(serializers.ModelSerializer):
    applicable_items = serializers.PrimaryKeyRelatedField(
        many=True, queryset=MenuItem.objects.all(), required=False
    )
    is_currently_effective = serializers.SerializerMethodField()

    class Meta:
        model = Campaign
        fields = [
            "id",
            "name",
            "discount_percent",
            "start_date",
            "start_time",
            "end_date",
            "end_time",
            "applicable_items",
            "is_active",
            "is_currently_effective",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def get_is_currently_effective(self, obj):
        return obj.is_currently_effective()

    def validate_discount_percent(self, value):
        if value <= 0 or value > 100:
            raise serializers.ValidationError("Discount must be in (0, 100].")
        return value

    def validate(self, attrs):
        instance = self.instance
        candidate = Campaign(
            start_date=attrs.get("start_date", getattr(instance, "start_date", None)),
            start_time=attrs.get("start_time", getattr(instance, "start_time", None)),
            end_date=attrs.get("end_date", getattr(instance, "end_date", None)),
            end_time=attrs.get("end_time", getattr(instance, "end_time", None)),
        )
        try:
            start, end = candidate.window()
        except (TypeError, ValueError):
            return attrs
        if end < start:
            raise serializers.ValidationError({"end_date": "Campaign must end after it starts."})
        return attrs
