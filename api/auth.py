"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh-token
- POST /auth/logout
- GET  /auth/me

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues short-lived access tokens and longer-lived refresh tokens (JWTs signed with HS256)
- Records every token in the ledger (Token model) so sessions can be revoked server-side
- Hands both tokens back in the body and as httpOnly cookies
"""
from __future__ import annotations

from datetime import timedelta

from flask import Blueprint, request, jsonify, g, current_app

from api.rate_limit import limiter, STANDARD
from models import storage
from models.user import User
from models.schemas.auth import LoginSchema, RegisterSchema
from models.schemas.user import UserOutSchema
from services.errors import BadRequest, Unauthorized
from utils.decorators import jwt_required, ACCESS_COOKIE, REFRESH_COOKIE

bp = Blueprint("auth", __name__, url_prefix="/auth")

login_schema = LoginSchema()
user_out_schema = UserOutSchema()


def _sessions():
    return current_app.extensions["session_service"]


def _set_cookie(response, name: str, value: str, max_age: timedelta) -> None:
    response.set_cookie(
        name,
        value,
        max_age=int(max_age.total_seconds()),
        httponly=True,
        secure=current_app.config["COOKIE_SECURE"],
        samesite=current_app.config["COOKIE_SAMESITE"],
    )


def _set_auth_cookies(response, tokens: dict) -> None:
    if "accessToken" in tokens:
        _set_cookie(response, ACCESS_COOKIE, tokens["accessToken"], current_app.config["ACCESS_TOKEN_EXPIRES"])
    if "refreshToken" in tokens:
        _set_cookie(response, REFRESH_COOKIE, tokens["refreshToken"], current_app.config["REFRESH_TOKEN_EXPIRES"])


def _clear_auth_cookies(response) -> None:
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            name,
            httponly=True,
            secure=current_app.config["COOKIE_SECURE"],
            samesite=current_app.config["COOKIE_SAMESITE"],
        )


def _token_from_request(cookie_name: str, payload: dict) -> str | None:
    """Cookie first; API clients without a cookie jar may send it in the body."""
    return request.cookies.get(cookie_name) or payload.get(cookie_name)


@bp.post("/register")
@limiter.limit(STANDARD)
def register():
    """
    Register a new student account and open a session.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [email, password]
          properties:
            email: { type: string, example: usuario@ueb.edu.ec }
            password: { type: string }
            first_name: { type: string }
            last_name: { type: string }
    responses:
      200:
        description: Registered (returns tokens and sets cookies)
      400:
        description: Validation error (e.g. email outside allowed domains)
      409:
        description: Email already registered
    """
    payload = request.get_json(silent=True) or {}
    schema = RegisterSchema(allowed_domains=current_app.config["ALLOWED_EMAIL_DOMAINS"])
    data = schema.load(payload)

    tokens = _sessions().register(
        data["email"],
        data["password"],
        first_name=data.get("first_name"),
        last_name=data.get("last_name"),
    )
    response = jsonify({"message": "Registro exitoso", "data": tokens})
    _set_auth_cookies(response, tokens)
    return response, 200


@bp.post("/login")
@limiter.limit(STANDARD)
def login():
    """
    Login: returns accessToken and refreshToken
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           required: [email, password]
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens and sets cookies)
      401:
        description: Credenciales inválidas
    """
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)

    tokens = _sessions().login(data["email"], data["password"])
    response = jsonify({"message": "Login exitoso", "data": tokens})
    _set_auth_cookies(response, tokens)
    return response, 200


@bp.post("/refresh-token")
@limiter.limit(STANDARD)
def refresh_token():
    """
    Mint a new access token from the refresh token cookie.
    ---
    tags:
      - Auth
    responses:
      200:
        description: Access token cookie replaced
      401:
        description: Missing, invalid, expired or revoked refresh token
    """
    payload = request.get_json(silent=True) or {}
    token = _token_from_request(REFRESH_COOKIE, payload)
    if not token:
        raise Unauthorized("No autorizado")

    result = _sessions().refresh(token)
    response = jsonify({"message": "Token actualizado", "data": {"user": result["user"]}})
    _set_auth_cookies(response, result)
    return response, 200


@bp.post("/logout")
@limiter.limit(STANDARD)
def logout():
    """
    Logout: revokes the session tokens and clears the cookies
    ---
    tags:
      - Auth
    responses:
      200:
        description: Logged out
      400:
        description: No active session
    """
    payload = request.get_json(silent=True) or {}
    access_token = _token_from_request(ACCESS_COOKIE, payload)
    refresh = _token_from_request(REFRESH_COOKIE, payload)
    if not access_token or not refresh:
        raise BadRequest("No hay sesión activa")

    _sessions().logout(refresh, access_token)
    response = jsonify({"message": "Logout exitoso"})
    _clear_auth_cookies(response)
    return response, 200


@bp.get("/me")
@limiter.limit(STANDARD)
@jwt_required()
def me():
    """
    Current user profile
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    user = storage.get(User, g.current_user["id"])
    if user is None:
        raise Unauthorized("Usuario no encontrado")
    return jsonify(
        {
            "message": "Datos del usuario obtenidos correctamente",
            "data": user_out_schema.dump(user),
        }
    ), 200
