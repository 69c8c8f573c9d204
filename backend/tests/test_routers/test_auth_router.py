"""Integration tests for auth API endpoints."""

import repositories.db_models as db_models


class TestAuthRouter:
    """Test cases for /api/auth endpoints."""

    def test_register_new_user(self, client):
        """Users outside the roster register as guests."""
        response = client.post(
            "/api/auth/register",
            json={
                "email": "newuser@club.example.edu",
                "unique_id": "newuser",
                "password": "SecurePassword123!",
                "name": "New User",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "newuser@club.example.edu"
        assert data["unique_id"] == "newuser"
        assert data["is_enrolled"] is False
        assert "hashed_password" not in data

    def test_register_roster_member(self, client, db_session):
        db_session.add(
            db_models.EnrolledMember(
                email="member@club.example.edu", unique_id="member", name="Member"
            )
        )
        db_session.commit()

        response = client.post(
            "/api/auth/register",
            json={
                "email": "member@club.example.edu",
                "unique_id": "member",
                "password": "SecurePassword123!",
                "name": "Whatever",
            },
        )

        assert response.status_code == 201
        assert response.json()["is_enrolled"] is True

    def test_register_duplicate_email(self, client, test_user):
        response = client.post(
            "/api/auth/register",
            json={
                "email": test_user.email,
                "unique_id": "someone_new",
                "password": "SecurePassword123!",
                "name": "Someone",
            },
        )

        assert response.status_code == 409
        assert "correlation_id" in response.json()

    def test_register_invalid_handle(self, client):
        response = client.post(
            "/api/auth/register",
            json={
                "email": "x@club.example.edu",
                "unique_id": "has spaces",
                "password": "SecurePassword123!",
                "name": "X",
            },
        )
        assert response.status_code == 422

    def test_login_and_me(self, client, test_user):
        response = client.post(
            "/api/auth/login",
            json={"email": test_user.email, "password": "testpassword123"},
        )
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert me.status_code == 200
        assert me.json()["unique_id"] == "test_user"

    def test_login_wrong_password(self, client, test_user):
        response = client.post(
            "/api/auth/login",
            json={"email": test_user.email, "password": "nope-nope"},
        )

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_me_requires_token(self, client):
        assert client.get("/api/auth/me").status_code == 401

    def test_me_rejects_garbage_token(self, client):
        response = client.get(
            "/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401

    def test_login_rate_limited(self, client, test_user):
        """Auth endpoints fall under the auth rate limit when enabled."""
        from helpers.rate_limiter import limiter

        limiter.enabled = True
        try:
            statuses = [
                client.post(
                    "/api/auth/login",
                    json={"email": test_user.email, "password": "wrong-password"},
                ).status_code
                for _ in range(6)
            ]
        finally:
            limiter.enabled = False
            limiter.reset()

        assert statuses[:5] == [401] * 5
        assert statuses[5] == 429
