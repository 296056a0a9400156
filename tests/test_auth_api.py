from datetime import datetime, timedelta, timezone

from app.models.user import User
from app.services.auth import SessionTokenIssuer
from app.utils.config import settings
from app.utils.security import verify_password


issuer = SessionTokenIssuer.from_settings(settings)


class TestRegisterAndLogin:
    def test_register_returns_token_for_new_user(self, client, api):
        token = api.register("Al", "al@x.com", "secret123")

        user = User.objects(email="al@x.com").first()
        assert issuer.verify(token) == str(user.id)
        assert user.role == "user"

    def test_register_stores_only_a_password_hash(self, api):
        api.register("Al", "al@x.com", "secret123")

        user = User.objects(email="al@x.com").first()
        assert user.password != "secret123"
        assert verify_password("secret123", user.password)

    def test_register_sets_http_only_session_cookie(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"name": "Al", "email": "al@x.com", "password": "secret123"},
        )

        cookie = response.headers["set-cookie"]
        assert cookie.startswith(f"token={response.json()['token']}")
        assert "httponly" in cookie.lower()
        # Not production, so the cookie may travel over plain HTTP
        assert "; secure" not in cookie.lower()

    def test_register_rejects_duplicate_email(self, client, api):
        api.register("Al", "al@x.com")

        response = client.post(
            "/api/v1/auth/register",
            json={"name": "Other Al", "email": "al@x.com", "password": "secret123"},
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Duplicate field value entered"}

    def test_register_rejects_invalid_email_and_short_password(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"name": "Al", "email": "not-an-email", "password": "123"},
        )

        body = response.json()
        assert response.status_code == 400
        assert body["success"] is False
        assert "email" in body["error"]
        assert "password" in body["error"]

    def test_register_cannot_grant_admin(self, client):
        response = client.post(
            "/api/v1/auth/register",
            json={"name": "Eve", "email": "eve@x.com", "password": "secret123", "role": "admin"},
        )

        assert response.status_code == 400
        assert User.objects(email="eve@x.com").count() == 0

    def test_login_with_valid_credentials_round_trips_user_id(self, api):
        api.register("Al", "al@x.com", "secret123")

        token = api.login("al@x.com", "secret123")

        assert issuer.verify(token) == str(User.objects(email="al@x.com").first().id)

    def test_login_with_wrong_password(self, client, api):
        api.register("Al", "al@x.com", "secret123")

        response = client.post("/api/v1/auth/login", json={"email": "al@x.com", "password": "wrong"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid credentials"}

    def test_login_with_unknown_email_looks_like_wrong_password(self, client):
        response = client.post("/api/v1/auth/login", json={"email": "nobody@x.com", "password": "secret123"})

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid credentials"

    def test_login_requires_email_and_password(self, client):
        response = client.post("/api/v1/auth/login", json={"email": "al@x.com"})

        assert response.status_code == 400
        assert response.json()["error"] == "Please provide an email and password"


class TestCurrentUser:
    def test_me_with_bearer_token(self, client, api, auth):
        token = api.register("Al", "al@x.com")
        client.cookies.clear()

        response = client.get("/api/v1/auth/me", headers=auth(token))

        user = response.json()["user"]
        assert response.status_code == 200
        assert user["email"] == "al@x.com"
        assert "password" not in user
        assert "reset_password_token" not in user

    def test_me_with_session_cookie(self, client, api):
        api.register("Al", "al@x.com")

        response = client.get("/api/v1/auth/me")

        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Al"

    def test_me_without_token(self, client):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Not authorized to access this route"}

    def test_me_with_forged_token(self, client, auth):
        forged = SessionTokenIssuer(
            secret_key="other-secret",
            algorithm="HS256",
            expires_delta=timedelta(days=1),
            cookie_expires_delta=timedelta(days=1),
        ).issue("64b7f0c2a1b2c3d4e5f60718").token

        response = client.get("/api/v1/auth/me", headers=auth(forged))

        assert response.status_code == 401

    def test_me_with_expired_token(self, client, api, auth):
        api.register("Al", "al@x.com")
        client.cookies.clear()
        user = User.objects(email="al@x.com").first()
        stale = issuer.issue(str(user.id), now=datetime.now(timezone.utc) - timedelta(days=settings.jwt_expire_days, minutes=1))

        response = client.get("/api/v1/auth/me", headers=auth(stale.token))

        assert response.status_code == 401

    def test_me_for_deleted_user(self, client, api, auth):
        token = api.register("Al", "al@x.com")
        client.cookies.clear()
        User.objects(email="al@x.com").delete()

        response = client.get("/api/v1/auth/me", headers=auth(token))

        assert response.status_code == 401


class TestLogout:
    def test_logout_expires_cookie(self, client, api):
        api.register("Al", "al@x.com")

        response = client.get("/api/v1/auth/logout")

        cookie = response.headers["set-cookie"].lower()
        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {}}
        assert cookie.startswith("token=")
        assert "01 jan 1970" in cookie
        assert "max-age=0" in cookie

    def test_token_stays_valid_after_logout(self, client, api, auth):
        # Known limitation: no server-side revocation list
        token = api.register("Al", "al@x.com")
        client.get("/api/v1/auth/logout")
        client.cookies.clear()

        response = client.get("/api/v1/auth/me", headers=auth(token))

        assert response.status_code == 200


class TestUpdateAccount:
    def test_update_details(self, client, api, auth):
        token = api.register("Al", "al@x.com")

        response = client.put(
            "/api/v1/auth/updatedetails",
            json={"name": "Alan", "email": "Alan@X.com"},
            headers=auth(token),
        )

        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Alan"
        assert response.json()["user"]["email"] == "alan@x.com"
        # The password must survive a details update
        api.login("alan@x.com", "secret123")

    def test_update_details_rejects_bad_email(self, client, api, auth):
        token = api.register("Al", "al@x.com")

        response = client.put("/api/v1/auth/updatedetails", json={"email": "nope"}, headers=auth(token))

        assert response.status_code == 400
        assert User.objects(email="al@x.com").count() == 1

    def test_update_details_rejects_blank_name(self, client, api, auth):
        token = api.register("Al", "al@x.com")

        response = client.put("/api/v1/auth/updatedetails", json={"name": ""}, headers=auth(token))

        assert response.status_code == 400
        assert "name" in response.json()["error"]
        assert User.objects(email="al@x.com").first().name == "Al"

    def test_update_password(self, client, api, auth):
        token = api.register("Al", "al@x.com", "secret123")

        response = client.put(
            "/api/v1/auth/updatepassword",
            json={"currentPassword": "secret123", "newPassword": "newsecret"},
            headers=auth(token),
        )

        assert response.status_code == 200
        assert response.json()["token"]
        api.login("al@x.com", "newsecret")

    def test_update_password_with_wrong_current_password(self, client, api, auth):
        token = api.register("Al", "al@x.com", "secret123")

        response = client.put(
            "/api/v1/auth/updatepassword",
            json={"currentPassword": "guess", "newPassword": "newsecret"},
            headers=auth(token),
        )

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Password is incorrect"}
        api.login("al@x.com", "secret123")
