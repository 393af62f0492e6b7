import pytest
from django.conf import settings
from django.urls import reverse
from rest_framework import status


# =============================================================================
# Token Tests
# =============================================================================

@pytest.mark.django_db
class TestTokenObtain:
    """Tests for POST /api/auth/token/"""

    def test_token_success(self, api_client, user):
        url = reverse('token_obtain_pair')
        response = api_client.post(url, {
            'email': 'testuser@example.com',
            'password': 'TestPass123!',
        })

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data
        assert 'refresh' in response.data

    def test_token_wrong_password(self, api_client, user):
        url = reverse('token_obtain_pair')
        response = api_client.post(url, {
            'email': 'testuser@example.com',
            'password': 'WrongPass123!',
        })

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_token_refresh(self, api_client, user):
        obtain = api_client.post(reverse('token_obtain_pair'), {
            'email': 'testuser@example.com',
            'password': 'TestPass123!',
        })
        response = api_client.post(
            reverse('token_refresh'),
            {'refresh': obtain.data['refresh']},
        )

        assert response.status_code == status.HTTP_200_OK
        assert 'access' in response.data


# =============================================================================
# Current User Tests
# =============================================================================

@pytest.mark.django_db
class TestCurrentUser:
    """Tests for GET /api/auth/me/"""

    def test_get_current_user(self, authenticated_client, user):
        url = reverse('users:current-user')
        response = authenticated_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data['email'] == user.email
        assert response.data['identity_verified'] is True

    def test_get_current_user_unauthenticated(self, api_client):
        url = reverse('users:current-user')
        response = api_client.get(url)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# =============================================================================
# Identity Verification Tests
# =============================================================================

@pytest.mark.django_db
class TestVerifyIdentity:
    """Tests for POST /api/auth/users/{id}/verify-identity/"""

    def test_staff_can_verify(self, staff_client, user_unverified):
        url = reverse('users:verify-identity', kwargs={'pk': user_unverified.id})
        response = staff_client.post(url, {'verified': True})

        assert response.status_code == status.HTTP_200_OK
        user_unverified.refresh_from_db()
        assert user_unverified.identity_verified is True
        assert user_unverified.identity_verified_at is not None

    def test_staff_can_revoke(self, staff_client, user):
        url = reverse('users:verify-identity', kwargs={'pk': user.id})
        response = staff_client.post(url, {'verified': False})

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.identity_verified is False
        assert user.identity_verified_at is None

    def test_non_staff_forbidden(self, authenticated_client, user_unverified):
        url = reverse('users:verify-identity', kwargs={'pk': user_unverified.id})
        response = authenticated_client.post(url, {'verified': True})

        assert response.status_code == status.HTTP_403_FORBIDDEN
        user_unverified.refresh_from_db()
        assert user_unverified.identity_verified is False

    def test_unknown_user(self, staff_client):
        url = reverse(
            'users:verify-identity',
            kwargs={'pk': '00000000-0000-0000-0000-000000000000'}
        )
        response = staff_client.post(url, {'verified': True})

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestHealthCheck:

    def test_health(self, api_client):
        response = api_client.get(reverse('health-check'))

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {'status': 'ok'}

    def test_plain_http_is_not_redirected(self, api_client):
        response = api_client.get(reverse('health-check'), secure=False)

        assert settings.SECURE_SSL_REDIRECT is False
        assert response.status_code == status.HTTP_200_OK


# =============================================================================
# Account Block Tests
# =============================================================================

@pytest.mark.django_db
class TestAccountBlock:
    """Tests for POST /api/auth/users/{id}/block/"""

    def test_me_shows_block(self, authenticated_client, user):
        user.mark_blocked()

        response = authenticated_client.get(reverse('users:current-user'))

        assert response.data['blocked'] is True
        assert response.data['blocked_at'] is not None

    def test_staff_can_block(self, staff_client, user):
        url = reverse('users:account-block', kwargs={'pk': user.id})
        response = staff_client.post(url, {'blocked': True, 'reason': 'fraude'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['blocked'] is True
        user.refresh_from_db()
        assert user.blocked is True

    def test_staff_can_unblock(self, staff_client, user):
        user.mark_blocked()
        url = reverse('users:account-block', kwargs={'pk': user.id})

        response = staff_client.post(url, {'blocked': False})

        assert response.status_code == status.HTTP_200_OK
        user.refresh_from_db()
        assert user.blocked is False
        assert user.blocked_at is None

    def test_non_staff_forbidden(self, authenticated_client, user):
        user.mark_blocked()
        url = reverse('users:account-block', kwargs={'pk': user.id})

        response = authenticated_client.post(url, {'blocked': False})

        assert response.status_code == status.HTTP_403_FORBIDDEN
        user.refresh_from_db()
        assert user.blocked is True

    def test_blocked_required(self, staff_client, user):
        url = reverse('users:account-block', kwargs={'pk': user.id})

        response = staff_client.post(url, {})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_user(self, staff_client):
        url = reverse(
            'users:account-block',
            kwargs={'pk': '00000000-0000-0000-0000-000000000000'}
        )
        response = staff_client.post(url, {'blocked': True})

        assert response.status_code == status.HTTP_404_NOT_FOUND
