import pytest
from rest_framework.test import APIClient

from apps.auctions.models import AuctionStatus
from apps.credits.models import PublicationService

from .helpers import client_for, fund, make_auction, make_user


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def seller(db):
    return make_user('seller@example.com', display_name='Vendedor')


@pytest.fixture
def bidder(db):
    user = make_user('bidder@example.com', display_name='Postor')
    fund(user, 10)
    return user


@pytest.fixture
def other_bidder(db):
    user = make_user('bidder2@example.com', display_name='Otro Postor')
    fund(user, 10)
    return user


@pytest.fixture
def unverified_bidder(db):
    user = make_user('unverified@example.com', verified=False)
    fund(user, 10)
    return user


@pytest.fixture
def staff_user(db):
    return make_user('staff@example.com', is_staff=True)


@pytest.fixture
def active_auction(seller):
    return make_auction(seller)


@pytest.fixture
def draft_auction(seller):
    return make_auction(
        seller,
        status=AuctionStatus.DRAFT,
        is_approved=False,
        start_date=None,
        end_date=None,
    )


@pytest.fixture
def publication_services(db):
    prices = {
        'publicacion_basica': 10,
        'destacado': 25,
        'fotografia_profesional': 15,
        'inspeccion_mecanica': 20,
        'informe_autofact': 5,
    }
    for code, credit_cost in prices.items():
        PublicationService.objects.update_or_create(
            code=code,
            defaults={'credit_cost': credit_cost, 'is_active': True},
        )
    return prices


@pytest.fixture
def seller_client(seller):
    return client_for(seller)


@pytest.fixture
def bidder_client(bidder):
    return client_for(bidder)


@pytest.fixture
def staff_client(staff_user):
    return client_for(staff_user)
