from django.urls import path, include
from rest_framework import routers

from .views import (
    AdminCanteenStatusView,
    AdminServiceHoursView,
    MenuItemViewSet,
    PublicCanteenStatusView,
    PublicMenuView,
    PublicServiceHoursView,
)

app_name = "menu"

router = routers.SimpleRouter()
router.register(r"admin/menu", MenuItemViewSet, basename="menu-item")

urlpatterns = [
    path("menu/public/", PublicMenuView.as_view(), name="public-menu"),
    path("canteen-status/public/", PublicCanteenStatusView.as_view(), name="canteen-status"),
    path("admin/canteen-status/", AdminCanteenStatusView.as_view(), name="admin-canteen-status"),
    path("service-hours/public/", PublicServiceHoursView.as_view(), name="service-hours"),
    path("admin/service-hours/", AdminServiceHoursView.as_view(), name="admin-service-hours"),
    path("", include(router.urls)),
]
