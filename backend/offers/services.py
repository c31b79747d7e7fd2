import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from canteen_backend.exceptions import NotFoundError, translate_store_errors
from canteen_backend.utils.clock import local_now
from menu.models import MenuItem

from .models import Campaign
from .pricing import PriceQuote, resolve_price

logger = logging.getLogger(__name__)


class CampaignService:
    """Reads campaigns for pricing and keeps their is_active flag in step with time."""

    @staticmethod
    @translate_store_errors
    def expire_elapsed_campaigns(now: Optional[datetime] = None) -> int:
        """
        Flip is_active off for every active campaign whose window has closed.

        Runs as a side effect of reads. Racing an admin edit is harmless: this
        only ever moves a campaign from active to inactive.
        """
        current = local_now(now)
        elapsed_ids = [
            campaign.pk
            for campaign in Campaign.objects.filter(is_active=True, end_date__lte=current.date())
            if campaign.has_ended(current)
        ]
        if not elapsed_ids:
            return 0

        flipped = Campaign.objects.filter(pk__in=elapsed_ids, is_active=True).update(is_active=False)
        logger.info(f"Deactivated {flipped} elapsed campaign(s)")
        return flipped

    @staticmethod
    @translate_store_errors
    def effective_campaigns(now: Optional[datetime] = None) -> List[Campaign]:
        """Campaigns active and inside their window right now, oldest first."""
        current = local_now(now)
        CampaignService.expire_elapsed_campaigns(current)
        campaigns = Campaign.objects.filter(
            is_active=True, start_date__lte=current.date(), end_date__gte=current.date()
        ).prefetch_related("applicable_items")
        return [campaign for campaign in campaigns if campaign.is_currently_effective(current)]

    @staticmethod
    def list_campaigns():
        """All campaigns for the admin screen, newest first, after lazy expiry."""
        CampaignService.expire_elapsed_campaigns()
        return Campaign.objects.prefetch_related("applicable_items").order_by("-created_at", "-id")


class PricingService:
    """Resolves effective prices against the campaigns in effect right now."""

    @staticmethod
    def resolve_price(item: MenuItem, now: Optional[datetime] = None) -> PriceQuote:
        if item is None:
            raise NotFoundError("Menu item not found.")
        return resolve_price(item, CampaignService.effective_campaigns(now), now=local_now(now))

    @staticmethod
    def resolve_prices(items: Iterable[MenuItem], now: Optional[datetime] = None) -> Dict[int, PriceQuote]:
        """Quotes for many items against a single campaign lookup."""
        current = local_now(now)
        campaigns = CampaignService.effective_campaigns(current)
        return {item.pk: resolve_price(item, campaigns, now=current) for item in items}
