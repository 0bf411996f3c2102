from datetime import timedelta

import jwt
import pytest

from models.base_model import utcnow
from utils.security import (
    TokenError,
    decode_token,
    encode_token,
    hash_password,
    verify_password,
)

SECRET = "unit-test-secret"


class TestPasswordHashing:
    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = hash_password("Secret123")
        assert hashed != "Secret123"
        assert hashed.startswith("$argon2")
        assert verify_password("Secret123", hashed) is True

    def test_wrong_password_is_rejected(self):
        assert verify_password("Secret124", hash_password("Secret123")) is False

    def test_malformed_hash_is_rejected_without_raising(self):
        assert verify_password("Secret123", "not-a-hash") is False

    def test_same_password_hashes_differently(self):
        assert hash_password("Secret123") != hash_password("Secret123")


class TestJwt:
    def _token(self, token_type="access", expires_in=timedelta(minutes=5), secret=SECRET):
        return encode_token("user-1", token_type, utcnow() + expires_in, secret)

    def test_round_trip_claims(self):
        claims = decode_token(self._token(), SECRET, expected_type="access")
        assert claims["sub"] == "user-1"
        assert claims["type"] == "access"
        assert claims["iss"] == "soft-connect-api"
        assert claims["jti"]

    def test_tokens_issued_together_differ(self):
        expires = utcnow() + timedelta(minutes=5)
        assert encode_token("u", "access", expires, SECRET) != encode_token("u", "access", expires, SECRET)

    def test_expired_token(self):
        token = self._token(expires_in=timedelta(seconds=-10))
        with pytest.raises(TokenError, match="Token expirado"):
            decode_token(token, SECRET)

    def test_bad_signature(self):
        token = self._token(secret="another-secret")
        with pytest.raises(TokenError, match="Token inválido"):
            decode_token(token, SECRET)

    def test_wrong_type(self):
        token = self._token(token_type="refresh")
        with pytest.raises(TokenError, match="Tipo de token incorrecto"):
            decode_token(token, SECRET, expected_type="access")

    def test_missing_subject(self):
        token = jwt.encode({"type": "access"}, SECRET, algorithm="HS256")
        with pytest.raises(TokenError, match="Token inválido"):
            decode_token(token, SECRET)
