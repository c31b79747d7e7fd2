from django.urls import path, include
from rest_framework import routers

from .views import (
    AdminOrderListView,
    DailyRevenueView,
    PublicOrderStatusView,
    StaffOrderViewSet,
    StudentOrderView,
)

app_name = "orders"

router = routers.SimpleRouter()
router.register(r"staff/orders", StaffOrderViewSet, basename="staff-order")

urlpatterns = [
    path("orders/", StudentOrderView.as_view(), name="student-orders"),
    path("orders/status/<str:lookup_token>/", PublicOrderStatusView.as_view(), name="order-status"),
    path("admin/orders/", AdminOrderListView.as_view(), name="admin-orders"),
    path("admin/daily-revenue/", DailyRevenueView.as_view(), name="daily-revenue"),
    path("", include(router.urls)),
]
