from django.urls import path, include
from rest_framework import routers

from .views import CampaignViewSet

app_name = "offers"

router = routers.SimpleRouter()
router.register(r"admin/offers", CampaignViewSet, basename="campaign")

urlpatterns = [
    path("", include(router.urls)),
]
