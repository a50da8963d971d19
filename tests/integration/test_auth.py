"""
Integration tests for session authentication and account approval.
"""

import pytest

from rebath.exceptions import Forbidden, Unauthenticated, ValidationError
from rebath.models import Profile
from rebath.services import auth_service


class TestAuthService:

    def test_register_starts_unapproved(self, session):
        profile = auth_service.register(session, ' New@Test.com ', 'longenough', full_name='Nia New')

        assert profile.email == 'new@test.com'
        assert profile.approved is False
        assert profile.role == 'user'

    def test_duplicate_email(self, session, owner):
        with pytest.raises(ValidationError):
            auth_service.register(session, owner.email.upper(), 'longenough')

    def test_short_password(self, session):
        with pytest.raises(ValidationError):
            auth_service.register(session, 'a@test.com', 'short')

    def test_pending_account_cannot_login(self, session):
        auth_service.register(session, 'wait@test.com', 'longenough')
        with pytest.raises(Forbidden):
            auth_service.authenticate(session, 'wait@test.com', 'longenough')

    def test_wrong_password(self, session, owner):
        with pytest.raises(Unauthenticated):
            auth_service.authenticate(session, owner.email, 'nope')

    def test_approve_and_promote(self, session, admin):
        profile = auth_service.register(session, 'wait@test.com', 'longenough')

        auth_service.approve_user(session, admin, profile.id)
        assert auth_service.authenticate(session, 'wait@test.com', 'longenough').id == profile.id

        auth_service.make_admin(session, admin, profile.id)
        assert session.query(Profile).filter_by(id=profile.id).one().is_admin

    def test_only_admin_approves(self, session, owner, other):
        with pytest.raises(Forbidden):
            auth_service.approve_user(session, owner, other.id)


class TestAuthRoutes:

    def test_login_and_me(self, client, owner):
        email = owner.email

        response = client.post('/auth/login', json={'email': email, 'password': 'password123'})
        assert response.status_code == 200

        response = client.get('/auth/me')
        assert response.status_code == 200
        assert response.get_json()['data']['email'] == email

    def test_logout(self, client, owner):
        client.post('/auth/login', json={'email': owner.email, 'password': 'password123'})
        client.post('/auth/logout')

        response = client.get('/auth/me')
        assert response.status_code == 401
        assert response.get_json()['kind'] == 'Unauthenticated'

    def test_bad_credentials(self, client, owner):
        response = client.post('/auth/login', json={'email': owner.email, 'password': 'wrong'})
        assert response.status_code == 401

    def test_form_validation(self, client):
        response = client.post('/auth/login', json={'email': 'x@test.com'})

        body = response.get_json()
        assert response.status_code == 400
        assert body['kind'] == 'ValidationError'
        assert 'password' in body['errors']

    def test_register_then_pending(self, client):
        response = client.post('/auth/register', json={
            'email': 'fresh@test.com', 'password': 'longenough', 'full_name': 'Fresh',
        })
        assert response.status_code == 201
        assert response.get_json()['data']['approved'] is False

        response = client.post('/auth/login', json={'email': 'fresh@test.com', 'password': 'longenough'})
        assert response.status_code == 403

    def test_user_admin_routes(self, client, login, admin, other):
        admin_id, other_id = admin.id, other.id
        login(admin_id)

        response = client.get('/auth/users')
        assert response.status_code == 200
        assert {u['id'] for u in response.get_json()['data']} >= {admin_id, other_id}

        response = client.post(f'/auth/users/{other_id}/make-admin')
        assert response.get_json()['data']['role'] == 'admin'

    def test_non_admin_cannot_list_users(self, client, login, owner):
        login(owner.id)
        assert client.get('/auth/users').status_code == 403

    def test_csrf_token(self, client):
        response = client.get('/auth/csrf-token')
        assert response.status_code == 200
        assert response.get_json()['data']['csrf_token']
