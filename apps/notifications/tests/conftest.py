import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.notifications.models import Notification, NotificationKind


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user(db):
    return User.objects.create_user(
        email='inbox@example.com',
        password='TestPass123!',
        display_name='Inbox Owner',
    )


@pytest.fixture
def other_user(db):
    return User.objects.create_user(
        email='someone@example.com',
        password='TestPass123!',
        display_name='Someone Else',
    )


@pytest.fixture
def authenticated_client(api_client, user):
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def notification(user):
    return Notification.objects.create(
        user=user,
        title='Nueva oferta',
        message='Recibiste una oferta de $1.050.000',
        kind=NotificationKind.BID_RECEIVED,
    )
