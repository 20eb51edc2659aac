"""Unit tests for JWT handler."""

from datetime import timedelta

import pytest
from jose import jwt

from config.settings import settings
from src.cs_common.errors import InvalidCredentialsError
from src.cs_gateway.auth.jwt_handler import create_access_token, decode_token


def test_access_token_contains_identity() -> None:
    payload = jwt.get_unverified_claims(create_access_token("venue:pool-manager"))
    assert payload["sub"] == "venue:pool-manager"
    assert payload["type"] == "access"


def test_decode_valid_token() -> None:
    assert decode_token(create_access_token("alice"))["sub"] == "alice"


def test_expired_token_rejected() -> None:
    token = create_access_token("alice", expires_in=timedelta(seconds=-1))
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


def test_wrong_secret_rejected() -> None:
    token = jwt.encode({"sub": "alice", "type": "access"}, "other-secret", algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


def test_non_access_type_rejected() -> None:
    token = jwt.encode({"sub": "alice", "type": "refresh"}, settings.JWT_SECRET, algorithm="HS256")
    with pytest.raises(InvalidCredentialsError):
        decode_token(token)


def test_garbage_rejected() -> None:
    with pytest.raises(InvalidCredentialsError):
        decode_token("not.a.jwt")
