from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .dispatcher import get_dispatcher
from .serializers import RegisterPushTokenSerializer


class RegisterPushTokenView(APIView):
    """Opt a device in to push notifications: POST {"deviceId", "fcmToken"}."""

    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = RegisterPushTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        get_dispatcher().register_push_token(
            serializer.validated_data["deviceId"], serializer.validated_data["fcmToken"]
        )
        return Response({"registered": True}, status=status.HTTP_201_CREATED)
