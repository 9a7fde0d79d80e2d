"""
Tests for registration, login, profile endpoints and token handling
"""
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from django.conf import settings

from authentication.jwt_auth import generate_token, verify_token
from authentication.models import User
from authentication.passwords import hash_password, verify_password
from tests.factories import auth_header


def _encode(payload: dict) -> str:
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def _claims(user, **overrides) -> dict:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "iat": now,
        "exp": now + timedelta(hours=1),
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
    }
    claims.update(overrides)
    return claims


class TestPasswords:
    """Test bcrypt helpers"""

    def test_hash_is_not_plaintext_and_verifies(self, settings):
        settings.BCRYPT_ROUNDS = 4
        hashed = hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert hashed.startswith("$2")
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("wrong-pass", hashed)

    def test_non_bcrypt_value_never_verifies(self):
        assert verify_password("anything", "plaintext") is False


@pytest.mark.django_db
class TestTokens:
    """Test JWT generation and verification"""

    def test_token_carries_identity_claims(self, customer):
        claims = verify_token(generate_token(customer))
        assert claims["sub"] == str(customer.id)
        assert claims["email"] == customer.email
        assert claims["role"] == User.ROLE_CUSTOMER
        assert claims["iss"] == settings.JWT_ISSUER
        assert claims["aud"] == settings.JWT_AUDIENCE

    def test_token_lifetime_matches_setting(self, customer):
        claims = verify_token(generate_token(customer))
        assert claims["exp"] - claims["iat"] == settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60

    def test_tampered_token_is_rejected(self, customer):
        token = generate_token(customer)
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, signature[::-1]])
        assert verify_token(tampered) is None

    def test_expired_token_is_rejected(self, customer):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = _encode(_claims(customer, iat=past, exp=past + timedelta(minutes=5)))
        assert verify_token(token) is None

    def test_wrong_audience_is_rejected(self, customer):
        assert verify_token(_encode(_claims(customer, aud="someone-else"))) is None

    def test_wrong_issuer_is_rejected(self, customer):
        assert verify_token(_encode(_claims(customer, iss="someone-else"))) is None

    def test_missing_claim_is_rejected(self, customer):
        claims = _claims(customer)
        del claims["role"]
        assert verify_token(_encode(claims)) is None


@pytest.mark.django_db
class TestRegisterAPI:
    """Test POST /api/auth/register"""

    def test_register_returns_token_and_user(self, client):
        response = client.post('/api/auth/register', {
            'name': 'Priya Varma',
            'email': 'priya@example.com',
            'password': 'longenough1',
        }, content_type='application/json')

        assert response.status_code == 201
        body = response.json()
        assert body['data']['token']
        assert body['data']['user']['email'] == 'priya@example.com'
        assert body['data']['user']['role'] == 'customer'
        assert 'password' not in body['data']['user']

        user = User.objects.get(email='priya@example.com')
        assert user.password != 'longenough1'
        assert verify_password('longenough1', user.password)

    def test_register_duplicate_email_conflicts(self, client, customer):
        response = client.post('/api/auth/register', {
            'name': 'Someone Else',
            'email': customer.email,
            'password': 'longenough1',
        }, content_type='application/json')

        assert response.status_code == 409
        assert response.json()['code'] == 'EMAIL_EXISTS'

    def test_register_short_password_fails_validation(self, client):
        response = client.post('/api/auth/register', {
            'name': 'Priya Varma',
            'email': 'priya@example.com',
            'password': 'short',
        }, content_type='application/json')

        assert response.status_code == 400
        body = response.json()
        assert body['code'] == 'VALIDATION_ERROR'
        assert any(detail['field'] == 'password' for detail in body['details'])
        assert not User.objects.filter(email='priya@example.com').exists()

    def test_register_records_analytics_event(self, client):
        from analytics.models import AnalyticsEvent

        client.post('/api/auth/register', {
            'name': 'Priya Varma',
            'email': 'priya@example.com',
            'password': 'longenough1',
        }, content_type='application/json')

        assert AnalyticsEvent.objects.filter(event=AnalyticsEvent.EVENT_USER_REGISTERED).count() == 1


@pytest.mark.django_db
class TestLoginAPI:
    """Test POST /api/auth/login"""

    def test_login_success(self, client, customer):
        response = client.post('/api/auth/login', {
            'email': 'customer@example.com',
            'password': 'customerpass123',
        }, content_type='application/json')

        assert response.status_code == 200
        token = response.json()['data']['token']
        assert verify_token(token)['sub'] == str(customer.id)

        customer.refresh_from_db()
        assert customer.login_count == 1
        assert customer.last_login_at is not None

    def test_login_email_is_case_insensitive(self, client, customer):
        response = client.post('/api/auth/login', {
            'email': 'Customer@Example.com',
            'password': 'customerpass123',
        }, content_type='application/json')

        assert response.status_code == 200

    def test_login_wrong_password(self, client, customer):
        response = client.post('/api/auth/login', {
            'email': customer.email,
            'password': 'not-the-password',
        }, content_type='application/json')

        assert response.status_code == 401
        assert response.json()['code'] == 'INVALID_CREDENTIALS'

    def test_login_unknown_email_looks_the_same(self, client, customer):
        response = client.post('/api/auth/login', {
            'email': 'nobody@example.com',
            'password': 'not-the-password',
        }, content_type='application/json')

        assert response.status_code == 401
        assert response.json() == {'error': 'Invalid email or password', 'code': 'INVALID_CREDENTIALS'}

    def test_login_inactive_account_refused(self, client, customer):
        customer.is_active = False
        customer.save()

        response = client.post('/api/auth/login', {
            'email': customer.email,
            'password': 'customerpass123',
        }, content_type='application/json')

        assert response.status_code == 401


@pytest.mark.django_db
class TestProfileAPI:
    """Test GET/PUT /api/auth/me"""

    def test_me_requires_token(self, client):
        response = client.get('/api/auth/me')
        assert response.status_code == 401
        assert response.json()['code'] == 'AUTH_TOKEN_MISSING'

    def test_me_rejects_garbage_token(self, client):
        response = client.get('/api/auth/me', **auth_header('not-a-jwt'))
        assert response.status_code == 401
        assert response.json()['code'] == 'AUTH_TOKEN_INVALID'

    def test_me_rejects_token_for_inactive_user(self, client, customer, customer_headers):
        User.objects.filter(pk=customer.pk).update(is_active=False)
        response = client.get('/api/auth/me', **customer_headers)
        assert response.status_code == 401
        assert response.json()['code'] == 'AUTH_TOKEN_INVALID'

    def test_me_rejects_token_with_malformed_subject(self, client, customer):
        token = _encode(_claims(customer, sub='not-a-uuid'))
        response = client.get('/api/auth/me', **auth_header(token))
        assert response.status_code == 401

    def test_me_returns_profile(self, client, customer, customer_headers):
        response = client.get('/api/auth/me', **customer_headers)
        assert response.status_code == 200
        data = response.json()['data']
        assert data['id'] == str(customer.id)
        assert data['email'] == customer.email
        assert 'password' not in data

    def test_update_name(self, client, customer, customer_headers):
        response = client.put('/api/auth/me', {'name': 'Renamed Customer'},
                              content_type='application/json', **customer_headers)
        assert response.status_code == 200
        assert response.json()['data']['name'] == 'Renamed Customer'

    def test_change_password_requires_current_password(self, client, customer_headers):
        response = client.put('/api/auth/me', {'new_password': 'brand-new-pass'},
                              content_type='application/json', **customer_headers)
        assert response.status_code == 400

    def test_change_password_rejects_wrong_current_password(self, client, customer, customer_headers):
        response = client.put('/api/auth/me', {
            'current_password': 'wrong-password',
            'new_password': 'brand-new-pass',
        }, content_type='application/json', **customer_headers)

        assert response.status_code == 400
        assert response.json()['details'][0]['field'] == 'current_password'
        customer.refresh_from_db()
        assert verify_password('customerpass123', customer.password)

    def test_change_password(self, client, customer, customer_headers):
        response = client.put('/api/auth/me', {
            'current_password': 'customerpass123',
            'new_password': 'brand-new-pass',
        }, content_type='application/json', **customer_headers)
        assert response.status_code == 200

        login = client.post('/api/auth/login', {
            'email': customer.email,
            'password': 'brand-new-pass',
        }, content_type='application/json')
        assert login.status_code == 200
