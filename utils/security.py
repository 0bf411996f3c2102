"""
security helpers:
- Argon2 password hashing via argon2-cffi (fixed work factor)
- JWT creation/verification via PyJWT
- JTI generation for token identifiers
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Dict, Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

# Constant work factor; changing these only affects newly created hashes
ARGON2_TIME_COST = 3
ARGON2_MEMORY_COST = 65536
ARGON2_PARALLELISM = 4

ph = PasswordHasher(
    time_cost=ARGON2_TIME_COST,
    memory_cost=ARGON2_MEMORY_COST,
    parallelism=ARGON2_PARALLELISM,
)


class TokenError(Exception):
    """Raised when a JWT is expired, tampered with or of the wrong type."""


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a plaintext password against an Argon2 hash.

    A mismatch or a malformed hash both return False.
    """
    try:
        return ph.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def encode_token(
    subject: str,
    token_type: str,
    expires_at: datetime,
    secret: str,
    algorithm: str = "HS256",
    issuer: str = "soft-connect-api",
    issued_at: datetime | None = None,
    jti: str | None = None,
) -> str:
    """
    Sign a JWT carrying the subject and token type.
    expires_at / issued_at are naive UTC datetimes.
    """
    issued_at = issued_at or datetime.now(timezone.utc).replace(tzinfo=None)
    payload = {
        "iss": issuer,
        "sub": str(subject),
        "type": token_type,
        "jti": jti or generate_jti(),
        "iat": int(issued_at.replace(tzinfo=timezone.utc).timestamp()),
        "exp": int(expires_at.replace(tzinfo=timezone.utc).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_token(token: str, secret: str, algorithm: str = "HS256", expected_type: str = "access") -> Dict[str, Any]:
    """
    Decode and validate a JWT. Raises TokenError on invalid signature,
    expiry, a missing subject or a type claim other than expected_type.
    """
    try:
        decoded = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError:
        raise TokenError("Token expirado")
    except jwt.InvalidTokenError:
        raise TokenError("Token inválido")

    if decoded.get("type") != expected_type:
        raise TokenError("Tipo de token incorrecto")
    if not decoded.get("sub"):
        raise TokenError("Token inválido")
    return decoded
