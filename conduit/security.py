"""
Credential service: password hashing and session tokens.

Pure computation, no I/O. Plaintext passwords are never logged.
"""
import logging
import uuid

import bcrypt
from jose import JWTError, jwt

from conduit.config import settings
from conduit.exceptions import InvalidCredentialError

logger = logging.getLogger(__name__)


def hash_password(plaintext: str) -> str:
    """Return a bcrypt hash of *plaintext* with a fresh random salt."""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("utf-8")


def verify_password(plaintext: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plaintext.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        logger.warning("Password verification against a malformed hash")
        return False


def issue_token(user_id: uuid.UUID, issued_at: int) -> str:
    """
    Return a signed token asserting that the holder is *user_id*.

    *issued_at* is a unix timestamp in seconds; the token expires
    ``ACCESS_TOKEN_EXPIRE_MINUTES`` later.
    """
    claims = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": issued_at + settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> uuid.UUID:
    """
    Verify *token* and return the user id it was issued for.

    Raises InvalidCredentialError for a bad signature, an expired token or
    a malformed subject.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        return uuid.UUID(payload["sub"])
    except (JWTError, KeyError, TypeError, ValueError) as exc:
        raise InvalidCredentialError("invalid authentication token") from exc
