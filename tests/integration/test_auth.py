"""
Integration tests for registration, login and the session cookie.
"""
import pytest

from kasir.exceptions import AuthenticationError, BusinessLogicError, ValidationError
from kasir.models import AppUser
from kasir.services import auth_service


class TestAuthService:
    def test_register_normalizes_email(self, session):
        user = auth_service.register_user(session, '  Ani@Example.COM ', 'rahasia', 'Ani', 'Kios Ani')
        assert user.email == 'ani@example.com'
        assert user.business_name == 'Kios Ani'
        assert user.check_password('rahasia')
        assert user.password_hash != 'rahasia'

    @pytest.mark.parametrize('email,password', [('bukan-email', 'rahasia'), ('ani@example.com', '123')])
    def test_register_validation(self, session, email, password):
        with pytest.raises(ValidationError):
            auth_service.register_user(session, email, password)

    def test_duplicate_email_is_case_insensitive(self, session, user1):
        with pytest.raises(BusinessLogicError):
            auth_service.register_user(session, 'BUDI@tokobudi.id', 'rahasia123')
        assert session.query(AppUser).count() == 1

    def test_authenticate(self, session, user1):
        assert auth_service.authenticate(session, 'budi@tokobudi.id', 'rahasia123').id == user1.id

    def test_wrong_password(self, session, user1):
        with pytest.raises(AuthenticationError):
            auth_service.authenticate(session, 'budi@tokobudi.id', 'salah')

    def test_inactive_user_cannot_login(self, session, user1):
        user1.active = False
        session.commit()
        with pytest.raises(AuthenticationError):
            auth_service.authenticate(session, 'budi@tokobudi.id', 'rahasia123')

    def test_profile_phone_numbers(self, session, user1):
        auth_service.update_profile(session, user1, {'wa_target_1': '0812-3456 7890', 'full_name': 'Budi S'})
        assert user1.profile['wa_target_1'] == '081234567890'
        assert user1.full_name == 'Budi S'
        assert user1.profile['business_name'] == 'Toko Budi'

        with pytest.raises(ValidationError):
            auth_service.update_profile(session, user1, {'wa_target_2': 'nomor saya'})


class TestAuthEndpoints:
    def test_register_logs_in(self, client):
        response = client.post('/auth/register', json={
            'email': 'ani@example.com', 'password': 'rahasia',
            'full_name': 'Ani', 'business_name': 'Kios Ani',
        })
        assert response.status_code == 201
        assert response.get_json()['data']['profile']['business_name'] == 'Kios Ani'

        status = client.get('/auth/session').get_json()['data']
        assert status['authenticated'] is True
        assert status['user']['email'] == 'ani@example.com'

    def test_register_short_password(self, client):
        response = client.post('/auth/register', json={'email': 'ani@example.com', 'password': '123'})
        assert response.status_code == 400
        assert response.get_json()['message'] == 'Password minimal 6 karakter'

    def test_register_duplicate(self, client, user1):
        response = client.post('/auth/register', json={'email': 'budi@tokobudi.id', 'password': 'rahasia'})
        assert response.status_code == 400
        assert 'sudah terdaftar' in response.get_json()['message']

    def test_login_logout_cycle(self, client, user1):
        response = client.post('/auth/login', json={'email': 'budi@tokobudi.id', 'password': 'rahasia123'})
        assert response.status_code == 200
        assert client.get('/auth/session').get_json()['data']['authenticated'] is True
        assert client.post('/auth/refresh').status_code == 200

        client.post('/auth/logout')
        assert client.get('/auth/session').get_json()['data'] == {'authenticated': False, 'user': None}
        assert client.post('/auth/refresh').status_code == 401

    def test_login_wrong_password(self, client, user1):
        response = client.post('/auth/login', json={'email': 'budi@tokobudi.id', 'password': 'salah'})
        assert response.status_code == 401
        assert response.get_json()['status'] == 'error'

    def test_login_missing_fields(self, client):
        assert client.post('/auth/login', json={'email': 'budi@tokobudi.id'}).status_code == 400

    def test_non_json_body(self, client):
        response = client.post('/auth/login', data='email=budi', content_type='text/plain')
        assert response.status_code == 400

    def test_profile_update(self, authenticated_client):
        response = authenticated_client.put('/auth/profile', json={'business_name': 'Toko Budi Jaya'})
        assert response.status_code == 200
        assert response.get_json()['data']['profile']['business_name'] == 'Toko Budi Jaya'

    def test_profile_accepts_numeric_phone(self, authenticated_client):
        response = authenticated_client.put('/auth/profile', json={'wa_target_1': 6281234567890})
        assert response.status_code == 200
        assert response.get_json()['data']['profile']['wa_target_1'] == '6281234567890'

    def test_csrf_token(self, client):
        data = client.get('/auth/csrf-token').get_json()['data']
        assert data['csrf_token']
