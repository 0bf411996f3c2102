"""
Session service: login, registration, refresh and logout.

Built once by the application factory with its collaborators (storage,
token issuer, revocation policies) and shared through app.extensions.

Policies:
- logout_scope="global": logout marks every unused access/refresh token of
  the user as used ("log out everywhere"). "session" revokes only the
  presented pair.
- rotate_refresh_tokens=False: refresh mints a new access token and leaves
  the refresh token valid until it expires. When True the presented
  refresh token is spent and a new one is returned with the access token.
"""
from __future__ import annotations

import logging
from typing import Dict

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError

from models.base_model import utcnow
from models.schemas.common import normalize_email
from models.token import Token, TokenType
from models.user import Role, User, UserStatus
from services.errors import Conflict, Unauthorized
from utils.security import TokenError, hash_password, verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Credenciales inválidas"
LOGOUT_SCOPES = ("global", "session")


class SessionService:
    def __init__(self, storage, issuer, logout_scope: str = "global", rotate_refresh_tokens: bool = False):
        if logout_scope not in LOGOUT_SCOPES:
            raise ValueError(f"logout_scope must be one of {LOGOUT_SCOPES}")
        self.storage = storage
        self.issuer = issuer
        self.logout_scope = logout_scope
        self.rotate_refresh_tokens = rotate_refresh_tokens

    def _query(self, cls):
        return self.storage.get_session().query(cls)

    def _commit(self):
        try:
            self.storage.save()
        except IntegrityError:
            raise Conflict("El usuario ya existe")

    def login(self, email: str, password: str) -> Dict[str, str]:
        """Return a fresh access+refresh pair for valid, active credentials."""
        email = normalize_email(email)
        user = self._query(User).filter(User.email == email, User.deleted_at.is_(None)).first()

        # Unknown email, inactive account and wrong password look the same
        if user is None or user.status != UserStatus.ACTIVE or not verify_password(password, user.password_hash):
            logger.info("Rejected login for %s", email)
            raise Unauthorized(INVALID_CREDENTIALS)

        tokens = self.issuer.issue_pair(user.id)
        self.storage.save()
        logger.info("User %s logged in", user.id)
        return tokens

    def register(self, email: str, password: str, first_name: str | None = None, last_name: str | None = None):
        """Create a student account and open a session for it."""
        email = normalize_email(email)
        if self._query(User).filter(User.email == email).first():
            raise Conflict("El usuario ya existe")

        user = User(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=Role.STUDENT,
        )
        self.storage.new(user)
        # User row and both ledger rows are committed together
        tokens = self.issuer.issue_pair(user.id)
        self._commit()
        logger.info("Registered user %s", user.id)
        return tokens

    def refresh(self, refresh_token: str) -> dict:
        """Mint a new access token from a live refresh token."""
        try:
            claims = self.issuer.decode(refresh_token, TokenType.REFRESH)
        except TokenError as exc:
            raise Unauthorized(str(exc))

        record = (
            self._query(Token)
            .filter(
                Token.token == refresh_token,
                Token.token_type == TokenType.REFRESH,
                Token.used.is_(False),
                Token.deleted_at.is_(None),
                Token.expires_at > utcnow(),
            )
            .first()
        )
        if record is None:
            raise Unauthorized("Token inválido o expirado")

        user_id = claims["sub"]
        user = self.storage.get(User, user_id)
        if user is None or user.is_deleted:
            raise Unauthorized("Token inválido o expirado")

        result = {"accessToken": self.issuer.issue(user_id, TokenType.ACCESS), "user": {"id": user_id}}
        if self.rotate_refresh_tokens:
            record.used = True
            result["refreshToken"] = self.issuer.issue(user_id, TokenType.REFRESH)
        self.storage.save()
        logger.info("Refreshed access token for user %s", user_id)
        return result

    def logout(self, refresh_token: str | None, access_token: str) -> int:
        """
        Revoke the session and return how many ledger rows were marked used.
        An invalid access token means the session is already over: no-op.
        """
        try:
            claims = self.issuer.decode(access_token, TokenType.ACCESS)
        except TokenError as exc:
            logger.info("Logout with unusable access token (%s); nothing to revoke", exc)
            return 0

        user_id = claims["sub"]
        presented = Token.token.in_([t for t in (access_token, refresh_token) if t])
        if self.logout_scope == "global":
            criteria = or_(presented, Token.token_type.in_([TokenType.ACCESS, TokenType.REFRESH]))
        else:
            criteria = presented

        revoked = (
            self._query(Token)
            .filter(and_(Token.user_id == user_id, Token.used.is_(False), criteria))
            .update({Token.used: True}, synchronize_session="fetch")
        )
        self.storage.save()
        logger.info("User %s logged out (%s scope, %d tokens revoked)", user_id, self.logout_scope, revoked)
        return revoked
