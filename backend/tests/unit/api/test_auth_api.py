"""
Unit Tests for Authentication API Endpoints
"""
import pytest
from httpx import AsyncClient

from app.core.security import create_refresh_token

PASSWORD = 'testpassword123'


class TestLogin:
    """Test POST /auth/login"""

    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient, operator_user):
        response = await client.post('/api/v1/auth/login', json={
            'username': operator_user.username,
            'password': PASSWORD,
        })

        assert response.status_code == 200
        data = response.json()
        assert data['accessToken']
        assert data['refreshToken']
        assert data['tokenType'] == 'bearer'
        assert data['expiresIn'] > 0
        assert data['user']['username'] == operator_user.username
        assert data['user']['role'] == 'OPERATOR'
        assert 'hashedPassword' not in data['user']

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, operator_user):
        response = await client.post('/api/v1/auth/login', json={
            'username': operator_user.username,
            'password': 'wrong-password',
        })

        assert response.status_code == 401
        assert response.json()['detail'] == 'Invalid username or password'

    @pytest.mark.asyncio
    async def test_login_unknown_user(self, client: AsyncClient, db_session):
        response = await client.post('/api/v1/auth/login', json={
            'username': 'nobody',
            'password': PASSWORD,
        })

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_login_inactive_user(self, client: AsyncClient, inactive_user):
        response = await client.post('/api/v1/auth/login', json={
            'username': inactive_user.username,
            'password': PASSWORD,
        })

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_login_missing_password(self, client: AsyncClient, db_session):
        response = await client.post('/api/v1/auth/login', json={'username': 'operator'})

        assert response.status_code == 400
        error = response.json()['error']
        assert error['code'] == 'VALIDATION_ERROR'
        assert error['details']['field'] == 'password'


class TestCurrentUser:
    """Test GET /auth/me"""

    @pytest.mark.asyncio
    async def test_me(self, client: AsyncClient, operator_user, auth_headers):
        response = await client.get('/api/v1/auth/me', headers=auth_headers)

        assert response.status_code == 200
        assert response.json()['id'] == str(operator_user.id)
        assert response.json()['isActive'] is True

    @pytest.mark.asyncio
    async def test_me_without_token(self, client: AsyncClient, db_session):
        response = await client.get('/api/v1/auth/me')

        assert response.status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_me_with_garbage_token(self, client: AsyncClient, db_session):
        response = await client.get('/api/v1/auth/me', headers={'Authorization': 'Bearer not-a-jwt'})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh_token_rejected_as_access(self, client: AsyncClient, operator_user):
        token = create_refresh_token({'sub': str(operator_user.id)})
        response = await client.get('/api/v1/auth/me', headers={'Authorization': f'Bearer {token}'})

        assert response.status_code == 401


class TestRefreshAndLogout:

    @pytest.mark.asyncio
    async def test_refresh(self, client: AsyncClient, operator_user):
        token = create_refresh_token({'sub': str(operator_user.id)})
        response = await client.post('/api/v1/auth/refresh', json={'refreshToken': token})

        assert response.status_code == 200
        new_token = response.json()['accessToken']
        me = await client.get('/api/v1/auth/me', headers={'Authorization': f'Bearer {new_token}'})
        assert me.status_code == 200

    @pytest.mark.asyncio
    async def test_refresh_with_access_token(self, client: AsyncClient, auth_headers):
        access_token = auth_headers['Authorization'].split(' ', 1)[1]
        response = await client.post('/api/v1/auth/refresh', json={'refreshToken': access_token})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh_for_inactive_user(self, client: AsyncClient, inactive_user):
        token = create_refresh_token({'sub': str(inactive_user.id)})
        response = await client.post('/api/v1/auth/refresh', json={'refreshToken': token})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_logout(self, client: AsyncClient, auth_headers):
        response = await client.post('/api/v1/auth/logout', headers=auth_headers)

        assert response.status_code == 200
        assert response.json()['message'] == 'Successfully logged out'
