"""Signup / login / me and the authentication middleware."""

import pytest
from sqlalchemy.exc import OperationalError

from auth import authenticate_request, check_password
from models import db as _db, User
from tests.conftest import headers_for
from tests.factories import UserFactory, DEFAULT_PASSWORD


SIGNUP = {'email': 'a@x.com', 'password': 'pw123456', 'name': 'A'}


class TestSignup:

    def test_signup_returns_token_and_user(self, client):
        response = client.post('/auth/signup', json=SIGNUP)

        assert response.status_code == 200
        body = response.get_json()
        assert body['token']
        assert body['user']['email'] == 'a@x.com'
        assert body['user']['name'] == 'A'
        assert 'password' not in body['user']
        assert 'password_hash' not in body['user']

    def test_password_is_stored_hashed(self, client, db):
        client.post('/auth/signup', json=SIGNUP)

        user = User.query.filter_by(email='a@x.com').one()
        assert user.password_hash != SIGNUP['password']
        assert check_password(user, SIGNUP['password'])

    def test_login_with_original_password_after_signup(self, client):
        client.post('/auth/signup', json=SIGNUP)

        response = client.post('/auth/login', json={
            'email': SIGNUP['email'],
            'password': SIGNUP['password']
        })

        assert response.status_code == 200
        assert response.get_json()['user']['email'] == 'a@x.com'

    def test_signup_token_authenticates(self, client):
        token = client.post('/auth/signup', json=SIGNUP).get_json()['token']

        response = client.get('/auth/me', headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 200
        assert response.get_json()['user']['email'] == 'a@x.com'

    def test_duplicate_email_rejected(self, client):
        client.post('/auth/signup', json=SIGNUP)

        response = client.post('/auth/signup', json=SIGNUP)

        assert response.status_code == 400
        assert response.get_json()['error'] == 'User already exists'

    def test_missing_fields_rejected(self, client):
        for field in ('email', 'password', 'name'):
            payload = dict(SIGNUP)
            payload.pop(field)

            response = client.post('/auth/signup', json=payload)

            assert response.status_code == 400
            assert response.get_json()['error'] == 'Missing required fields'

    def test_invalid_email_rejected(self, client):
        response = client.post('/auth/signup', json={**SIGNUP, 'email': 'not-an-email'})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Validation failed'
        assert 'email' in response.get_json()['details']

    def test_non_json_body_rejected(self, client):
        response = client.post('/auth/signup', data='email=a@x.com', content_type='text/plain')

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Request body must be JSON'


class TestLogin:

    def test_login_success(self, client, user):
        response = client.post('/auth/login', json={
            'email': user.email,
            'password': DEFAULT_PASSWORD
        })

        assert response.status_code == 200
        body = response.get_json()
        assert body['token']
        assert body['user'] == {'id': user.id, 'email': user.email, 'name': user.name}

    def test_wrong_password_and_unknown_email_look_the_same(self, client, user):
        wrong_password = client.post('/auth/login', json={
            'email': user.email,
            'password': 'wrong-password'
        })
        unknown_email = client.post('/auth/login', json={
            'email': 'nobody@example.com',
            'password': DEFAULT_PASSWORD
        })

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.get_json() == unknown_email.get_json() == {'error': 'Invalid credentials'}

    def test_missing_fields(self, client):
        response = client.post('/auth/login', json={'email': 'a@x.com'})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Missing email or password'


class TestMe:

    def test_me_returns_current_user(self, client, user, auth_headers):
        response = client.get('/auth/me', headers=auth_headers)

        assert response.status_code == 200
        assert response.get_json() == {
            'user': {'id': user.id, 'email': user.email, 'name': user.name}
        }

    def test_missing_token(self, client):
        response = client.get('/auth/me')

        assert response.status_code == 401
        assert response.get_json() == {'error': 'No token provided'}

    def test_invalid_token(self, client):
        response = client.get('/auth/me', headers={'Authorization': 'Bearer garbage.token.value'})

        assert response.status_code == 401
        assert response.get_json() == {'error': 'Invalid token'}

    def test_deleted_user(self, client, db):
        ghost = UserFactory()
        headers = headers_for(ghost)
        db.session.delete(ghost)
        db.session.commit()

        response = client.get('/auth/me', headers=headers)

        assert response.status_code == 401
        assert response.get_json() == {'error': 'User not found'}


class TestAuthenticateRequest:

    def test_authenticated(self, app, user):
        with app.test_request_context(headers=headers_for(user)):
            result = authenticate_request()

        assert result == {'authenticated': True, 'user': user}

    def test_reasons(self, app):
        cases = [
            ({}, 'No token provided'),
            ({'Authorization': 'Bearer '}, 'No token provided'),
            ({'Authorization': 'Bearer abc'}, 'Invalid token'),
        ]
        for headers, reason in cases:
            with app.test_request_context(headers=headers):
                assert authenticate_request() == {'authenticated': False, 'error': reason}

    def test_database_error_during_lookup_is_unauthenticated(self, app, user, monkeypatch):
        def broken_get(*args, **kwargs):
            raise OperationalError('SELECT', {}, Exception('database is locked'))

        with app.test_request_context(headers=headers_for(user)):
            monkeypatch.setattr(_db.session, 'get', broken_get)
            result = authenticate_request()

        assert result == {'authenticated': False, 'error': 'Authentication failed'}


LONG_PASSWORDS = [
    pytest.param('p' * 100, id='ascii'),
    pytest.param('密' * 30, id='multibyte'),
]


class TestLongPasswords:

    @pytest.mark.parametrize('password', LONG_PASSWORDS)
    def test_signup_then_login(self, client, password):
        signup = client.post('/auth/signup', json={**SIGNUP, 'password': password})
        login = client.post('/auth/login', json={'email': SIGNUP['email'], 'password': password})

        assert signup.status_code == 200
        assert login.status_code == 200
        assert login.get_json()['user']['email'] == SIGNUP['email']

    @pytest.mark.parametrize('password', LONG_PASSWORDS)
    def test_wrong_long_password_and_unknown_email_look_the_same(self, client, password):
        client.post('/auth/signup', json={**SIGNUP, 'password': password})

        wrong_password = client.post('/auth/login', json={
            'email': SIGNUP['email'],
            'password': password + 'x'
        })
        unknown_email = client.post('/auth/login', json={
            'email': 'nobody@example.com',
            'password': password
        })

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.get_json() == unknown_email.get_json() == {'error': 'Invalid credentials'}

    def test_passwords_sharing_first_72_bytes_differ(self, client):
        password = 'p' * 72 + 'a'
        client.post('/auth/signup', json={**SIGNUP, 'password': password})

        response = client.post('/auth/login', json={
            'email': SIGNUP['email'],
            'password': 'p' * 72 + 'b'
        })

        assert response.status_code == 401
