# backend/tests/test_auth_api.py

from core.auth_context import UserRole
from tests.factories import DEFAULT_PASSWORD, AdminUserFactory


class TestLogin:
    def test_login_returns_bearer_token(self, client, admin_user):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "manager@example.com", "password": DEFAULT_PASSWORD},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["expires_in"] > 0
        assert body["user"]["email"] == "manager@example.com"
        assert body["user"]["role"] == "RESTAURANT_ADMIN"

        me = client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"Bearer {body['access_token']}"},
        )
        assert me.status_code == 200
        assert me.json()["restaurant_id"] == admin_user.restaurant_id

    def test_wrong_password(self, client, admin_user):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "manager@example.com", "password": "not-the-password"},
        )

        assert response.status_code == 401
        body = response.json()
        assert body["error_code"] == "AUTH_FAILED"
        assert body["message"] == "Incorrect email or password"
        assert body["path"] == "/api/v1/auth/login"

    def test_inactive_user_cannot_login(self, client, restaurant):
        AdminUserFactory(email="gone@example.com", restaurant=restaurant, is_active=False)
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "gone@example.com", "password": DEFAULT_PASSWORD},
        )
        assert response.status_code == 401

    def test_malformed_email(self, client):
        response = client.post("/api/v1/auth/login", json={"email": "nobody", "password": "x"})
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "email"


class TestCurrentUser:
    def test_missing_token(self, client):
        response = client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication is required."

    def test_message_is_localized(self, client):
        response = client.get("/api/v1/auth/me", headers={"Accept-Language": "tr-TR,tr;q=0.9"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Kimlik doğrulaması gerekli."

    def test_garbage_token(self, client):
        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_api_token_has_no_user(self, client, api_headers):
        assert client.get("/api/v1/auth/me", headers=api_headers).status_code == 404


class TestProvisioning:
    def test_platform_admin_creates_users(self, client, restaurant, headers_for):
        platform = AdminUserFactory(role=UserRole.ADMIN, restaurant=None)

        response = client.post(
            "/api/v1/auth/users",
            headers=headers_for(platform),
            json={
                "email": "cashier@example.com",
                "name": "Cashier",
                "password": "long-enough-pass",
                "role": "STAFF",
                "restaurant_id": restaurant.id,
            },
        )

        assert response.status_code == 201
        assert response.json()["role"] == "STAFF"

    def test_restaurant_admin_cannot(self, client, auth_headers, restaurant):
        response = client.post(
            "/api/v1/auth/users",
            headers=auth_headers,
            json={"email": "x@example.com", "name": "Xavier", "password": "long-enough-pass"},
        )
        assert response.status_code == 403
        assert response.json()["error_code"] == "PERMISSION_DENIED"
