import logging
from datetime import datetime
from typing import List, Optional

from canteen_backend.exceptions import translate_store_errors
from canteen_backend.utils.clock import is_now_between, local_now
from offers.services import PricingService

from .models import MenuItem, ServiceHours

logger = logging.getLogger(__name__)


class ServiceHoursService:
    """Reads and edits the breakfast/lunch serving windows."""

    @staticmethod
    @translate_store_errors
    def get_hours() -> ServiceHours:
        return ServiceHours.get_solo()

    @staticmethod
    @translate_store_errors
    def update_hours(data: dict) -> ServiceHours:
        """
        Update a window only when both of its ends are supplied, so a partial
        payload never leaves a window half-edited.
        """
        hours = ServiceHours.get_solo()
        changed = []
        for meal in ("breakfast", "lunch"):
            start = data.get(f"{meal}_start")
            end = data.get(f"{meal}_end")
            if start and end:
                setattr(hours, f"{meal}_start", start)
                setattr(hours, f"{meal}_end", end)
                changed += [f"{meal}_start", f"{meal}_end"]

        if changed:
            hours.full_clean()
            hours.save(update_fields=changed + ["updated_at"])
            logger.info(f"Service hours updated: {hours}")
        return hours

    @staticmethod
    def allowed_categories(hours: ServiceHours, now: Optional[datetime] = None) -> dict:
        return {
            MenuItem.Category.BREAKFAST: is_now_between(hours.breakfast_start, hours.breakfast_end, now),
            MenuItem.Category.LUNCH: is_now_between(hours.lunch_start, hours.lunch_end, now),
        }


class MenuService:
    """Builds the student-facing menu."""

    @staticmethod
    @translate_store_errors
    def public_menu(now: Optional[datetime] = None) -> List[dict]:
        """
        Every in-stock item with its effective price, minus breakfast or lunch items
        outside their serving window.
        """
        current = local_now(now)
        hours = ServiceHours.get_solo()
        allowed = ServiceHoursService.allowed_categories(hours, current)

        items = [
            item
            for item in MenuItem.objects.filter(stock__gt=0)
            if allowed.get(item.category, True)
        ]
        quotes = PricingService.resolve_prices(items, current)

        menu = []
        for item in items:
            quote = quotes[item.pk]
            menu.append(
                {
                    "id": item.pk,
                    "name": item.name,
                    "category": item.category,
                    "stock": item.stock,
                    "image_url": item.image_url,
                    "price": quote.price,
                    "original_price": quote.original_price,
                    "is_offer": quote.discounted,
                    "discount_percent": quote.discount_percent,
                }
            )
        return menu
