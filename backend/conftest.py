"""
Root conftest.py for all backend tests.

This file makes fixtures available to all test files across all apps.
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from django.apps import apps
from django.contrib.auth import get_user_model
from django.utils import timezone

from canteen_backend.utils.clock import local_now

User = get_user_model()


# ============================================================================
# AUTO-USE FIXTURES (Run automatically for every test)
# ============================================================================

@pytest.fixture(autouse=True)
def reset_process_state():
    """
    Reset process-scoped state after each test.

    The session registry and the canteen flag live on the app configs for the
    lifetime of the process, so they would otherwise leak between tests.
    """
    yield
    apps.get_app_config("notifications").session_registry.clear()
    apps.get_app_config("menu").canteen_status.set_open(True)


@pytest.fixture(autouse=True)
def celery_eager():
    """
    Run Celery tasks inline so push delivery can be asserted in-process.

    Deployments keep eager mode off; tests that need the deployed behavior
    switch it back for their own duration.
    """
    from canteen_backend.celery import app as celery_app

    celery_app.conf.task_always_eager = True
    yield
    celery_app.conf.task_always_eager = False


# ============================================================================
# API CLIENT FIXTURES
# ============================================================================

@pytest.fixture
def api_client():
    """Unauthenticated DRF client, as used by student devices."""
    from rest_framework.test import APIClient

    return APIClient()


def _bearer_client(user):
    from rest_framework.test import APIClient
    from rest_framework_simplejwt.tokens import RefreshToken

    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {RefreshToken.for_user(user).access_token}")
    return client


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(username="kitchen", password="pass1234", is_staff=True)


@pytest.fixture
def canteen_admin(db):
    return User.objects.create_user(
        username="manager", password="pass1234", is_staff=True, is_superuser=True
    )


@pytest.fixture
def student_user(db):
    """An authenticated user without staff rights."""
    return User.objects.create_user(username="student", password="pass1234")


@pytest.fixture
def staff_client(staff_user):
    return _bearer_client(staff_user)


@pytest.fixture
def admin_client_jwt(canteen_admin):
    return _bearer_client(canteen_admin)


@pytest.fixture
def student_client(student_user):
    return _bearer_client(student_user)


# ============================================================================
# DOMAIN FIXTURES
# ============================================================================

@pytest.fixture
def session_registry():
    return apps.get_app_config("notifications").session_registry


@pytest.fixture
def local_today():
    return local_now().date()


@pytest.fixture
def menu_item_factory(db):
    from menu.models import MenuItem

    def create(name="Tea", price="100.00", category=MenuItem.Category.SNACKS, stock=10, **kwargs):
        return MenuItem.objects.create(
            name=name, price=Decimal(price), category=category, stock=stock, **kwargs
        )

    return create


@pytest.fixture
def campaign_factory(db, local_today):
    """Campaigns running from yesterday to tomorrow unless told otherwise."""
    from offers.models import Campaign

    def create(items=(), discount_percent="20", name="Offer", **kwargs):
        fields = {
            "start_date": local_today - timedelta(days=1),
            "start_time": "00:00",
            "end_date": local_today + timedelta(days=1),
            "end_time": "23:59",
        }
        fields.update(kwargs)
        campaign = Campaign.objects.create(name=name, discount_percent=Decimal(discount_percent), **fields)
        campaign.applicable_items.set(items)
        return campaign

    return create


@pytest.fixture
def order_factory(db):
    """Orders created through the ledger, so they carry real identifiers."""
    from orders.services import OrderService

    def create(items=None, total_amount=None, device_token="device-abc", payment_status="PAID", **kwargs):
        items = items or [{"name": "Tea", "quantity": 2, "unit_price": Decimal("10")}]
        if total_amount is None:
            total_amount = sum(Decimal(str(line["unit_price"])) * line["quantity"] for line in items)
        return OrderService.create_order(
            items=items,
            total_amount=total_amount,
            collection_time=kwargs.pop("collection_time", "Now"),
            payment_info={"method": "RAZORPAY", "status": payment_status, "payment_id": "pay_test"},
            device_token=device_token,
            **kwargs,
        )

    return create


@pytest.fixture
def now():
    return timezone.now()
