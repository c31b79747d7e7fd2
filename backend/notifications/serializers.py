from rest_framework import serializers


class RegisterPushTokenSerializer(serializers.Serializer):
    deviceId = serializers.CharField(max_length=255)
    fcmToken = serializers.CharField(max_length=4096)
