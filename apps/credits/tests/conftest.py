import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.credits.models import MovementKind, PublicationService
from apps.credits.services import apply_movement


PUBLICATION_SERVICES = {
    'publicacion_basica': 10,
    'destacado': 25,
    'fotografia_profesional': 15,
    'inspeccion_mecanica': 20,
    'informe_autofact': 5,
}


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user(db):
    return User.objects.create_user(
        email='buyer@example.com',
        password='TestPass123!',
        display_name='Buyer',
    )


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(
        email='operator@example.com',
        password='TestPass123!',
        display_name='Operator',
        is_staff=True,
    )


@pytest.fixture
def funded_user(user):
    """User with 20 credits bought in one movement."""
    apply_movement(
        user_id=user.id,
        kind=MovementKind.PURCHASE,
        amount=20,
        description='Saldo inicial',
    )
    return user


@pytest.fixture
def publication_services(db):
    """
    Ensure the service catalogue exists.

    The seed migration's rows do not survive a TransactionTestCase flush,
    so tests that price publications request this fixture.
    """
    for code, credit_cost in PUBLICATION_SERVICES.items():
        PublicationService.objects.update_or_create(
            code=code,
            defaults={'credit_cost': credit_cost, 'is_active': True},
        )
    return PUBLICATION_SERVICES


@pytest.fixture
def authenticated_client(api_client, user):
    refresh = RefreshToken.for_user(user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def staff_client(api_client, staff_user):
    refresh = RefreshToken.for_user(staff_user)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client
