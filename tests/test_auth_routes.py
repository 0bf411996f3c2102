"""HTTP flow for /auth: cookies, body tokens and the error envelope."""
from datetime import timedelta

from conftest import PASSWORD, PREFIX, bearer, create_user, login, register
from models import storage
from models.base_model import utcnow
from models.token import Token
from models.user import User, UserStatus


def cookie_value(client, name):
    cookie = client.get_cookie(name)
    return cookie.value if cookie else None


class TestRegister:
    def test_register_then_me_with_cookie(self, client):
        resp = register(client, "ana@ueb.edu.ec", "Secret123")
        assert resp.status_code == 200
        tokens = resp.get_json()["data"]
        assert set(tokens) == {"accessToken", "refreshToken"}
        assert cookie_value(client, "accessToken") == tokens["accessToken"]
        assert cookie_value(client, "refreshToken") == tokens["refreshToken"]

        me = client.get(f"{PREFIX}/auth/me")
        assert me.status_code == 200
        profile = me.get_json()["data"]
        assert profile["email"] == "ana@ueb.edu.ec"
        assert profile["role"] == "student"
        assert "password" not in profile
        assert "password_hash" not in profile

    def test_cookies_are_http_only_and_strict(self, client):
        resp = register(client)
        headers = resp.headers.getlist("Set-Cookie")
        access = next(h for h in headers if h.startswith("accessToken="))
        refresh = next(h for h in headers if h.startswith("refreshToken="))
        assert "HttpOnly" in access and "SameSite=Strict" in access
        assert "Max-Age=86400" in access
        assert "Max-Age=604800" in refresh

    def test_register_outside_allowed_domains(self, client):
        resp = register(client, "ana@gmail.com")
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["error"] == "VALIDATION_ERROR"
        assert "email" in body["details"]

    def test_register_duplicate_email(self, client):
        register(client)
        resp = register(client, "ANA@ueb.edu.ec")
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "CONFLICT"

    def test_register_requires_password(self, client):
        resp = client.post(f"{PREFIX}/auth/register", json={"email": "ana@ueb.edu.ec"})
        assert resp.status_code == 400
        assert "password" in resp.get_json()["details"]


class TestLogin:
    def test_login_sets_cookies(self, api_client):
        create_user("ana@ueb.edu.ec")
        resp = login(api_client, "ana@ueb.edu.ec")
        assert resp.status_code == 200
        assert resp.get_json()["message"] == "Login exitoso"
        assert any(h.startswith("accessToken=") for h in resp.headers.getlist("Set-Cookie"))

    def test_wrong_password_and_unknown_email_match(self, api_client):
        create_user("ana@ueb.edu.ec")
        wrong = login(api_client, "ana@ueb.edu.ec", "Wrong1234")
        unknown = login(api_client, "nadie@ueb.edu.ec")

        assert wrong.status_code == unknown.status_code == 401
        assert wrong.get_json()["message"] == "Credenciales inválidas"
        assert wrong.get_json() == unknown.get_json()

    def test_pending_user_cannot_login(self, api_client):
        create_user("ana@ueb.edu.ec", status=UserStatus.PENDING)
        assert login(api_client, "ana@ueb.edu.ec").status_code == 401

    def test_soft_deleted_user_cannot_login(self, api_client, admin):
        user_id = create_user("ana@ueb.edu.ec")
        api_client.delete(f"{PREFIX}/users/{user_id}/soft", headers=bearer(admin["accessToken"]))
        assert login(api_client, "ana@ueb.edu.ec").status_code == 401


class TestRefresh:
    def test_refresh_replaces_access_cookie(self, client):
        tokens = register(client).get_json()["data"]
        resp = client.post(f"{PREFIX}/auth/refresh-token")
        assert resp.status_code == 200
        assert resp.get_json()["message"] == "Token actualizado"

        new_access = cookie_value(client, "accessToken")
        assert new_access != tokens["accessToken"]
        assert cookie_value(client, "refreshToken") == tokens["refreshToken"]
        assert client.get(f"{PREFIX}/auth/me").status_code == 200

    def test_refresh_from_body(self, api_client):
        tokens = register(api_client).get_json()["data"]
        resp = api_client.post(f"{PREFIX}/auth/refresh-token", json={"refreshToken": tokens["refreshToken"]})
        assert resp.status_code == 200

    def test_refresh_without_token(self, api_client):
        assert api_client.post(f"{PREFIX}/auth/refresh-token").status_code == 401

    def test_refresh_with_used_token(self, api_client):
        tokens = register(api_client).get_json()["data"]
        row = storage.get_session().query(Token).filter(Token.token == tokens["refreshToken"]).one()
        row.used = True
        storage.save()
        storage.close()

        resp = api_client.post(f"{PREFIX}/auth/refresh-token", json={"refreshToken": tokens["refreshToken"]})
        assert resp.status_code == 401


class TestLogout:
    def test_logout_clears_cookies_and_revokes(self, client):
        tokens = register(client).get_json()["data"]
        resp = client.post(f"{PREFIX}/auth/logout")
        assert resp.status_code == 200
        assert resp.get_json()["message"] == "Logout exitoso"
        assert cookie_value(client, "accessToken") is None

        again = client.post(f"{PREFIX}/auth/refresh-token", json={"refreshToken": tokens["refreshToken"]})
        assert again.status_code == 401
        me = client.get(f"{PREFIX}/auth/me", headers=bearer(tokens["accessToken"]))
        assert me.status_code == 401

    def test_logout_without_session(self, api_client):
        resp = api_client.post(f"{PREFIX}/auth/logout")
        assert resp.status_code == 400
        assert resp.get_json()["message"] == "No hay sesión activa"


class TestMe:
    def test_me_requires_token(self, api_client):
        resp = api_client.get(f"{PREFIX}/auth/me")
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "UNAUTHORIZED"

    def test_me_with_bearer_header(self, api_client, student):
        resp = api_client.get(f"{PREFIX}/auth/me", headers=bearer(student["accessToken"]))
        assert resp.status_code == 200
        assert resp.get_json()["data"]["id"] == student["id"]

    def test_refresh_token_is_not_an_access_token(self, api_client, student):
        resp = api_client.get(f"{PREFIX}/auth/me", headers=bearer(student["refreshToken"]))
        assert resp.status_code == 401

    def test_unknown_but_well_signed_token(self, app, api_client, student):
        # Signed correctly but never recorded in the ledger
        forged = app.extensions["token_issuer"].issue(student["id"], "access")
        storage.rollback()
        resp = api_client.get(f"{PREFIX}/auth/me", headers=bearer(forged))
        assert resp.status_code == 401

    def test_expired_ledger_row_is_rejected(self, api_client, student):
        row = storage.get_session().query(Token).filter(Token.token == student["accessToken"]).one()
        row.expires_at = utcnow() - timedelta(days=2)
        storage.save()
        storage.close()

        resp = api_client.get(f"{PREFIX}/auth/me", headers=bearer(student["accessToken"]))
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Token expirado"

    def test_hard_deleted_user_loses_tokens(self, api_client, admin, student):
        resp = api_client.delete(f"{PREFIX}/users/{student['id']}/hard", headers=bearer(admin["accessToken"]))
        assert resp.status_code == 200

        assert storage.get_session().query(Token).filter(Token.user_id == student["id"]).count() == 0
        assert storage.get(User, student["id"]) is None
        storage.close()
        assert api_client.get(f"{PREFIX}/auth/me", headers=bearer(student["accessToken"])).status_code == 401


class TestMisc:
    def test_health(self, api_client):
        resp = api_client.get(f"{PREFIX}/health")
        assert resp.get_json() == {"status": "ok", "version": "1.0.0"}

    def test_unknown_route_uses_error_envelope(self, api_client):
        resp = api_client.get(f"{PREFIX}/nope")
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "NOT_FOUND"


def test_password_is_never_echoed(api_client, student):
    resp = api_client.get(f"{PREFIX}/users/{student['id']}", headers=bearer(student["accessToken"]))
    assert PASSWORD not in resp.get_data(as_text=True)
