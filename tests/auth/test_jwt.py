"""Access token tests."""

import jwt
import pytest

from ladder.auth.jwt import create_access_token, verify_token


class TestVerifyToken:
    """Signature, expiry and type checks."""

    def test_round_trip_claims(self):
        payload = verify_token(create_access_token(42, "alice"))
        assert payload["sub"] == "42"
        assert payload["username"] == "alice"
        assert payload["iss"] == "ladder"

    def test_expired(self):
        token = create_access_token(42, "alice", expires_minutes=-1)
        with pytest.raises(jwt.ExpiredSignatureError):
            verify_token(token)

    def test_wrong_type(self):
        with pytest.raises(jwt.InvalidTokenError, match="Expected token type"):
            verify_token(create_access_token(42, "alice"), expected_type="refresh")

    def test_foreign_secret(self):
        token = jwt.encode(
            {"sub": "42", "iat": 0, "exp": 4_102_444_800, "iss": "ladder", "type": "access"},
            "some-other-secret",
            algorithm="HS256",
        )
        with pytest.raises(jwt.InvalidSignatureError):
            verify_token(token)
