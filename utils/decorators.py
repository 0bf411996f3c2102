"""
View decorators guarding the API:

- jwt_required(): authenticates the request against the token ledger and
  the JWT signature, then exposes g.current_user = {id, role, status}.
- roles_required(roles): jwt_required() plus a role and status check
  against the user row as it is *now* in the database.
"""
from __future__ import annotations

import logging
from functools import wraps

from flask import current_app, g, request

from models import storage
from models.base_model import as_naive_utc, utcnow
from models.token import Token, TokenType
from models.user import User, UserStatus
from services.errors import Forbidden, Unauthorized
from utils.security import TokenError

logger = logging.getLogger(__name__)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def _value(enum_or_str):
    return getattr(enum_or_str, "value", enum_or_str)


def get_access_token() -> str | None:
    """Access token from the cookie, falling back to a Bearer header."""
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


def authenticate(token: str | None) -> dict:
    """Run the per-request checks and return the caller identity."""
    if not token:
        raise Unauthorized("Acceso no autorizado")

    session = storage.get_session()
    record = (
        session.query(Token)
        .filter(
            Token.token == token,
            Token.token_type == TokenType.ACCESS,
            Token.used.is_(False),
            Token.deleted_at.is_(None),
        )
        .first()
    )
    if record is None:
        raise Unauthorized("Acceso no autorizado")
    if utcnow() > as_naive_utc(record.expires_at):
        raise Unauthorized("Token expirado")

    try:
        decoded = current_app.extensions["token_issuer"].decode(token, TokenType.ACCESS)
    except TokenError as e:
        raise Unauthorized(str(e))

    user = storage.get(User, decoded["sub"])
    if user is None or user.is_deleted:
        raise Unauthorized("Acceso no autorizado")

    g.current_token = record
    return {"id": user.id, "role": _value(user.role), "status": _value(user.status)}


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            g.current_user = authenticate(get_access_token())
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(required_roles: list[str]):
    """
    Allow access if the user's current role is one of required_roles.
    The role is re-read from the database, not taken from the token.
    """
    allowed = [_value(r) for r in (required_roles or [])]

    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            user = storage.get(User, g.current_user["id"])
            if user is None or user.is_deleted:
                raise Unauthorized("Usuario no encontrado en el sistema")
            if user.status != UserStatus.ACTIVE:
                logger.info("User %s (%s) denied; account not active", user.id, _value(user.status))
                raise Unauthorized("Usuario inactivo")

            role = _value(user.role)
            if role not in allowed:
                logger.info("User %s (%s) denied; requires %s", user.id, role, allowed)
                raise Forbidden(
                    f"Acceso denegado. Se requieren permisos de: {', '.join(allowed)}",
                    details={"required_roles": allowed, "user_role": role},
                )
            g.current_user["role"] = role
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def is_admin() -> bool:
    return getattr(g, "current_user", {}).get("role") == "admin"
