from django.urls import path

from .views import RegisterPushTokenView

app_name = "notifications"

urlpatterns = [
    path("register/", RegisterPushTokenView.as_view(), name="register-push-token"),
]
