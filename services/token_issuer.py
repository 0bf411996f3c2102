"""
Token issuer: signs JWTs and records each one in the token ledger.

issue() only adds the ledger row to the current session; committing is the
caller's job so that an access+refresh pair lands in one transaction.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict

from models.base_model import utcnow
from models.token import Token, TokenType
from utils.security import decode_token, encode_token

logger = logging.getLogger(__name__)

DEFAULT_TTLS = {
    TokenType.ACCESS: timedelta(days=1),
    TokenType.REFRESH: timedelta(days=7),
    TokenType.RESET: timedelta(hours=24),
    TokenType.VERIFICATION: timedelta(hours=48),
}


class TokenIssuer:
    def __init__(
        self,
        storage,
        secret: str,
        algorithm: str = "HS256",
        issuer: str = "soft-connect-api",
        access_ttl: timedelta | None = None,
        refresh_ttl: timedelta | None = None,
    ):
        self.storage = storage
        self.secret = secret
        self.algorithm = algorithm
        self.issuer = issuer
        self.ttls = dict(DEFAULT_TTLS)
        if access_ttl is not None:
            self.ttls[TokenType.ACCESS] = access_ttl
        if refresh_ttl is not None:
            self.ttls[TokenType.REFRESH] = refresh_ttl

    def ttl_for(self, token_type) -> timedelta:
        return self.ttls[TokenType(token_type)]

    def issue(self, user_id: str, token_type, ttl: timedelta | None = None) -> str:
        """Sign a token for user_id and add its ledger row (uncommitted)."""
        token_type = TokenType(token_type)
        issued_at = utcnow()
        expires_at = issued_at + (ttl if ttl is not None else self.ttl_for(token_type))

        signed = encode_token(
            subject=user_id,
            token_type=token_type.value,
            expires_at=expires_at,
            secret=self.secret,
            algorithm=self.algorithm,
            issuer=self.issuer,
            issued_at=issued_at,
        )
        self.storage.new(
            Token(
                token=signed,
                user_id=user_id,
                token_type=token_type,
                expires_at=expires_at,
                used=False,
            )
        )
        logger.debug("Issued %s token for user %s (expires %s)", token_type.value, user_id, expires_at)
        return signed

    def issue_pair(self, user_id: str) -> Dict[str, str]:
        return {
            "accessToken": self.issue(user_id, TokenType.ACCESS),
            "refreshToken": self.issue(user_id, TokenType.REFRESH),
        }

    def decode(self, token: str, expected_type) -> Dict[str, Any]:
        """Verify signature, expiry and type claim; raises TokenError."""
        return decode_token(
            token,
            self.secret,
            algorithm=self.algorithm,
            expected_type=TokenType(expected_type).value,
        )
