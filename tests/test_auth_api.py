"""
Integration Tests for the authentication endpoints
==================================================
"""
import os
import sys
import json
from datetime import datetime, timedelta, timezone

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from translation_assistant.models.user import User
from translation_assistant.services.auth_service import issue_token, decode_token
from tests.conftest import STRONG_PASSWORD, register


class TestRegister:
    """Test account creation."""

    def test_register_returns_token_and_user(self, client):
        response = register(client, email='Alice@Example.com')
        assert response.status_code == 201

        data = json.loads(response.data)
        assert data['success'] is True
        assert data['message'] == "User registered successfully"

        user = data['data']['user']
        assert user['email'] == 'alice@example.com'
        assert user['username'] == 'alice'
        assert user['preferences'] == {'defaultTone': 'natural', 'language': 'zh-CN', 'theme': 'light'}
        assert 'password' not in json.dumps(user).lower()

        claims = decode_token(data['data']['token'])
        assert claims['userId'] == str(user['id'])
        assert claims['username'] == 'alice'
        assert claims['exp'] - claims['iat'] == 7 * 24 * 3600

    def test_duplicate_email(self, client):
        register(client)
        response = register(client, username='alice2')
        assert response.status_code == 400
        assert json.loads(response.data)['message'] == "Email is already registered"

    def test_duplicate_username(self, client):
        register(client)
        response = register(client, email='other@example.com')
        assert response.status_code == 400
        assert json.loads(response.data)['message'] == "Username is already taken"

    def test_validation_errors(self, client):
        response = client.post('/api/auth/register', json={
            'email': 'nope', 'username': 'x', 'password': 'short', 'confirmPassword': 'short'
        })
        assert response.status_code == 400
        data = json.loads(response.data)
        assert data['success'] is False
        assert data['message'] == "Validation failed"
        assert {e['field'] for e in data['errors']} == {'email', 'username', 'password'}

    def test_non_json_body(self, client):
        response = client.post('/api/auth/register', data='plain text')
        assert response.status_code == 400


class TestLogin:
    """Test credential checks."""

    def test_login_success(self, client, auth_headers):
        response = client.post('/api/auth/login', json={
            'email': 'ALICE@example.com', 'password': STRONG_PASSWORD
        })
        assert response.status_code == 200
        data = json.loads(response.data)['data']
        assert data['user']['email'] == 'alice@example.com'
        assert data['user']['lastLoginAt'] is not None
        assert data['token']

    def test_wrong_password(self, client, auth_headers):
        response = client.post('/api/auth/login', json={
            'email': 'alice@example.com', 'password': 'Wrong1!pass'
        })
        assert response.status_code == 401
        assert json.loads(response.data)['message'] == "Invalid email or password"

    def test_unknown_email(self, client):
        response = client.post('/api/auth/login', json={
            'email': 'ghost@example.com', 'password': STRONG_PASSWORD
        })
        assert response.status_code == 401
        assert json.loads(response.data)['message'] == "Invalid email or password"


class TestAuthMiddleware:
    """Test bearer token handling."""

    def message(self, response):
        return json.loads(response.data)['message']

    def test_missing_header(self, client):
        response = client.get('/api/auth/me')
        assert response.status_code == 401
        assert self.message(response) == "Access denied. No token provided."

    def test_wrong_scheme(self, client):
        response = client.get('/api/auth/me', headers={'Authorization': 'Basic abc'})
        assert response.status_code == 401
        assert self.message(response) == "Access denied. No token provided."

    def test_empty_token(self, client):
        response = client.get('/api/auth/me', headers={'Authorization': 'Bearer'})
        assert response.status_code == 401
        assert self.message(response) == "Access denied. Invalid token format."

    def test_garbage_token(self, client):
        response = client.get('/api/auth/me', headers={'Authorization': 'Bearer not.a.jwt'})
        assert response.status_code == 401
        assert self.message(response) == "Invalid token."

    def test_expired_token(self, client, auth_headers):
        me = json.loads(client.get('/api/auth/me', headers=auth_headers).data)['data']['user']
        user = User(id=me['id'], email=me['email'], username=me['username'])
        token = issue_token(user, now=datetime.now(timezone.utc) - timedelta(days=8))

        response = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})
        assert response.status_code == 401
        assert self.message(response) == "Token has expired."

    def test_user_no_longer_exists(self, client):
        token = issue_token(User(id=9999, email='gone@example.com', username='gone'))
        response = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})
        assert response.status_code == 401
        assert self.message(response) == "Token is valid but user no longer exists."

    def test_me(self, client, auth_headers):
        response = client.get('/api/auth/me', headers=auth_headers)
        assert response.status_code == 200
        assert json.loads(response.data)['data']['user']['username'] == 'alice'


class TestSessionEndpoints:
    """Test logout, refresh and password change."""

    def test_logout(self, client, auth_headers):
        response = client.post('/api/auth/logout', headers=auth_headers)
        assert response.status_code == 200
        assert json.loads(response.data)['success'] is True

    def test_refresh(self, client, auth_headers):
        response = client.post('/api/auth/refresh', headers=auth_headers)
        assert response.status_code == 200
        token = json.loads(response.data)['data']['token']
        assert decode_token(token)['username'] == 'alice'

    def test_change_password(self, client, auth_headers):
        new_password = 'Newer2@pass'
        response = client.put('/api/auth/password', headers=auth_headers, json={
            'currentPassword': STRONG_PASSWORD,
            'newPassword': new_password,
            'confirmNewPassword': new_password,
        })
        assert response.status_code == 200

        old = client.post('/api/auth/login', json={'email': 'alice@example.com', 'password': STRONG_PASSWORD})
        assert old.status_code == 401
        new = client.post('/api/auth/login', json={'email': 'alice@example.com', 'password': new_password})
        assert new.status_code == 200

    def test_change_password_wrong_current(self, client, auth_headers):
        response = client.put('/api/auth/password', headers=auth_headers, json={
            'currentPassword': 'Wrong1!pass',
            'newPassword': 'Newer2@pass',
            'confirmNewPassword': 'Newer2@pass',
        })
        assert response.status_code == 401
        assert json.loads(response.data)['message'] == "Current password is incorrect"

    def test_change_password_validation(self, client, auth_headers):
        response = client.put('/api/auth/password', headers=auth_headers, json={
            'currentPassword': STRONG_PASSWORD,
            'newPassword': 'weak',
            'confirmNewPassword': 'weak',
        })
        assert response.status_code == 400
        assert {e['field'] for e in json.loads(response.data)['errors']} == {'newPassword'}

    def test_password_change_limit(self, client, auth_headers):
        body = {
            'currentPassword': 'Wrong1!pass',
            'newPassword': 'Newer2@pass',
            'confirmNewPassword': 'Newer2@pass',
        }
        statuses = [
            client.put('/api/auth/password', headers=auth_headers, json=body).status_code
            for _ in range(4)
        ]
        assert statuses == [401, 401, 401, 429]
