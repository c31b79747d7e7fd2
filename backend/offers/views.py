import logging

from rest_framework import viewsets

from canteen_backend.permissions import IsCanteenAdmin
from .serializers import CampaignSerializer
from .services import CampaignService

logger = logging.getLogger(__name__)


class CampaignViewSet(viewsets.ModelViewSet):
    """Campaign administration. Every read runs the lazy expiry first."""

    serializer_class = CampaignSerializer
    permission_classes = [IsCanteenAdmin]

    def get_queryset(self):
        return CampaignService.list_campaigns()

    def perform_create(self, serializer):
        campaign = serializer.save()
        logger.info(f"Campaign {campaign.pk} '{campaign.name}' created ({campaign.discount_percent}%)")

    def perform_update(self, serializer):
        campaign = serializer.save()
        logger.info(f"Campaign {campaign.pk} '{campaign.name}' updated")

    def perform_destroy(self, instance):
        logger.info(f"Campaign {instance.pk} '{instance.name}' deleted")
        instance.delete()
