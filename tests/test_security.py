"""Credential service tests: bcrypt hashing and session tokens."""
import time
import uuid

import pytest
from jose import jwt

from conduit.config import settings
from conduit.exceptions import InvalidCredentialError
from conduit.security import decode_token, hash_password, issue_token, verify_password


def test_hash_is_not_plaintext_and_verifies():
    hashed = hash_password("hunter2")
    assert hashed != "hunter2"
    assert verify_password("hunter2", hashed)
    assert not verify_password("hunter3", hashed)


def test_hash_uses_fresh_salt():
    assert hash_password("same") != hash_password("same")


def test_verify_against_malformed_hash():
    assert verify_password("anything", "not-a-bcrypt-hash") is False


def test_token_round_trip():
    user_id = uuid.uuid4()
    now = int(time.time())
    token = issue_token(user_id, now)

    assert decode_token(token) == user_id
    claims = jwt.get_unverified_claims(token)
    assert claims["iat"] == now
    assert claims["exp"] == now + settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


def test_expired_token_rejected():
    issued = int(time.time()) - settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60 - 10
    token = issue_token(uuid.uuid4(), issued)
    with pytest.raises(InvalidCredentialError):
        decode_token(token)


def test_token_with_wrong_signature_rejected():
    forged = jwt.encode(
        {"sub": str(uuid.uuid4()), "exp": int(time.time()) + 60},
        "some-other-secret",
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidCredentialError):
        decode_token(forged)


def test_token_with_non_uuid_subject_rejected():
    token = jwt.encode(
        {"sub": "42", "exp": int(time.time()) + 60},
        settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidCredentialError):
        decode_token(token)
