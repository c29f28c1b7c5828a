from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.config import settings
from conduit.database import get_db
from conduit.exceptions import AuthenticationRequiredError, InvalidCredentialError, NotFoundError
from conduit.models import User
from conduit.security import decode_token
from conduit.services import user_service

_TOKEN_SCHEMES = ("token", "bearer")


class PaginationParams:
    """
    Reusable FastAPI dependency that parses and validates the ``offset`` /
    ``limit`` query parameters of list endpoints.

    Attributes
    ----------
    offset:
        Number of rows to skip (minimum 0).
    limit:
        Number of items per page, clamped to ``settings.MAX_PAGE_SIZE``
        regardless of the value supplied by the caller.
    """

    def __init__(
        self,
        offset: int = Query(
            0,
            ge=0,
            description="Number of articles to skip.",
        ),
        limit: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            description="Number of articles returned per page.",
        ),
    ) -> None:
        self.offset = offset
        self.limit = min(limit, settings.MAX_PAGE_SIZE)


def _extract_token(request: Request) -> str | None:
    """Return the token from ``Authorization: Token <jwt>`` (or ``Bearer``)."""
    header = request.headers.get("Authorization")
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() not in _TOKEN_SCHEMES or not token.strip():
        raise InvalidCredentialError("malformed authorization header")
    return token.strip()


async def _resolve_user(request: Request, db: AsyncSession) -> User | None:
    token = _extract_token(request)
    if token is None:
        return None
    user_id = decode_token(token)
    try:
        user = await user_service.find_by_id(db, user_id)
    except NotFoundError as exc:
        # Token outlived its account.
        raise InvalidCredentialError("invalid authentication token") from exc
    request.state.user = user
    return user


async def access_auth_user(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    """Resolve the caller's identity; requests without a token are rejected."""
    user = await _resolve_user(request, db)
    if user is None:
        raise AuthenticationRequiredError()
    return user


async def optional_auth_user(
    request: Request, db: AsyncSession = Depends(get_db)
) -> User | None:
    """Like ``access_auth_user`` but anonymous callers get ``None``."""
    return await _resolve_user(request, db)
