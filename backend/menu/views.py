from rest_framework import viewsets
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from canteen_backend.permissions import IsCanteenAdmin
from .canteen import get_canteen_status
from .models import MenuItem
from .serializers import (
    CanteenStatusSerializer,
    MenuItemSerializer,
    PublicMenuItemSerializer,
    ServiceHoursSerializer,
)
from .services import MenuService, ServiceHoursService


class MenuItemViewSet(viewsets.ModelViewSet):
    """Catalog administration."""

    queryset = MenuItem.objects.all()
    serializer_class = MenuItemSerializer
    permission_classes = [IsCanteenAdmin]


class PublicMenuView(APIView):
    """Student menu with offer prices applied and serving windows enforced."""

    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        menu = MenuService.public_menu()
        return Response(PublicMenuItemSerializer(menu, many=True).data)


class PublicCanteenStatusView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return Response({"is_open": get_canteen_status().is_open})


class AdminCanteenStatusView(APIView):
    """PATCH with {"is_open": bool} to set, or an empty body to toggle."""

    permission_classes = [IsCanteenAdmin]

    def patch(self, request):
        serializer = CanteenStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        status_flag = get_canteen_status()
        if "is_open" in serializer.validated_data:
            is_open = status_flag.set_open(serializer.validated_data["is_open"])
        else:
            is_open = status_flag.toggle()
        return Response({"is_open": is_open})


class PublicServiceHoursView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return Response(ServiceHoursSerializer(ServiceHoursService.get_hours()).data)


class AdminServiceHoursView(APIView):
    permission_classes = [IsCanteenAdmin]

    def patch(self, request):
        serializer = ServiceHoursSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        hours = ServiceHoursService.update_hours(serializer.validated_data)
        return Response(ServiceHoursSerializer(hours).data)
