"""
Effective price resolution for catalog items under campaign discounts.

Kept free of database access: callers hand in the campaigns they loaded,
which keeps the rule itself easy to test and lets the menu resolve a whole
catalog against one campaign query.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

WHOLE_UNIT = Decimal("1")


@dataclass(frozen=True)
class PriceQuote:
    """Effective unit price plus where the discount came from."""

    price: Decimal
    original_price: Decimal
    discounted: bool = False
    discount_percent: Decimal = Decimal("0")
    campaign_id: Optional[int] = None
    campaign_name: str = ""


def apply_discount(original_price, discount_percent) -> Decimal:
    """Take a percentage off and round to the nearest whole currency unit."""
    original = Decimal(original_price)
    discount = original * Decimal(discount_percent) / Decimal("100")
    return (original - discount).quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


def _campaign_sort_key(campaign):
    created = getattr(campaign, "created_at", None)
    return (created is None, created or datetime.min, campaign.pk or 0)


def matching_campaign(item_id, campaigns: Iterable, now: Optional[datetime] = None):
    """
    The campaign that prices `item_id` at `now`, or None.

    Only campaigns that are currently effective are considered, whatever their
    stored is_active flag says about the past. When several overlap the
    earliest-created one wins.
    """
    candidates = [
        campaign
        for campaign in campaigns
        if campaign.is_currently_effective(now) and item_id in _applicable_ids(campaign)
    ]
    if not candidates:
        return None
    return min(candidates, key=_campaign_sort_key)


def _applicable_ids(campaign):
    ids = getattr(campaign, "_applicable_item_ids", None)
    if ids is None:
        ids = {item.pk for item in campaign.applicable_items.all()}
        campaign._applicable_item_ids = ids
    return ids


def resolve_price(item, campaigns: Iterable, now: Optional[datetime] = None) -> PriceQuote:
    """Effective price for a menu item given the candidate campaigns."""
    original = Decimal(item.price)
    campaign = matching_campaign(item.pk, campaigns, now)
    if campaign is None:
        return PriceQuote(price=original, original_price=original)

    return PriceQuote(
        price=apply_discount(original, campaign.discount_percent),
        original_price=original,
        discounted=True,
        discount_percent=Decimal(campaign.discount_percent),
        campaign_id=campaign.pk,
        campaign_name=campaign.name,
    )
