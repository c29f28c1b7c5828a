"""
User service: accounts, credentials and the follow graph for the User
aggregate.

Every function takes the request's AsyncSession as its first argument and
flushes but does not commit; ``get_db`` owns the transaction. Failures are
raised as ``conduit.exceptions`` types and mapped to HTTP statuses by the
handler registered in ``main.py``.
"""
import logging
import time
import uuid

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.exceptions import (
    InvalidCredentialError,
    NotFoundError,
    UniqueConstraintViolationError,
)
from conduit.models import User
from conduit.schemas import Profile, UpdateUser
from conduit.security import hash_password, issue_token, verify_password
from conduit.services import follow_service

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = ("email", "username", "password", "image", "bio")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def generate_token(user: User) -> str:
    return issue_token(user.id, int(time.time()))


def to_profile(user: User, following: bool = False) -> Profile:
    return Profile(
        username=user.username,
        bio=user.bio,
        image=user.image,
        following=following,
    )


async def _ensure_unique(
    db: AsyncSession,
    email: str | None,
    username: str | None,
    exclude_id: uuid.UUID | None = None,
) -> None:
    """Raise UniqueConstraintViolationError if another user holds *email* or *username*."""
    clauses = []
    if email is not None:
        clauses.append(User.email == email)
    if username is not None:
        clauses.append(User.username == username)
    if not clauses:
        return

    q = select(User.email, User.username).where(or_(*clauses))
    if exclude_id is not None:
        q = q.where(User.id != exclude_id)
    for taken_email, taken_username in (await db.execute(q)).all():
        if email is not None and taken_email == email:
            raise UniqueConstraintViolationError("email")
        raise UniqueConstraintViolationError("username")


async def _flush_unique(db: AsyncSession) -> None:
    # A concurrent request can still win the race between the check and
    # the insert; the database constraint is the final word.
    try:
        await db.flush()
    except IntegrityError as exc:
        raise UniqueConstraintViolationError("email or username") from exc


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def signup(
    db: AsyncSession, email: str, username: str, password: str
) -> tuple[User, str]:
    """Create an account and return it together with a fresh session token."""
    await _ensure_unique(db, email, username)

    user = User(
        email=email,
        username=username,
        password=hash_password(password),
    )
    db.add(user)
    await _flush_unique(db)

    logger.info("User signed up: id=%s username=%s", user.id, user.username)
    return user, generate_token(user)


async def signin(db: AsyncSession, email: str, password: str) -> tuple[User, str]:
    result = await db.execute(select(User).where(User.email == email).limit(1))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("user", lookup=email)
    if not verify_password(password, user.password):
        logger.info("Failed sign-in for user id=%s", user.id)
        raise InvalidCredentialError()
    return user, generate_token(user)


async def find_by_id(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("user", lookup=str(user_id))
    return user


async def find_by_username(db: AsyncSession, username: str) -> User:
    result = await db.execute(select(User).where(User.username == username).limit(1))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("profile", lookup=username)
    return user


async def update(db: AsyncSession, user: User, changes: UpdateUser) -> User:
    """
    Apply the fields explicitly set in *changes* to *user*.

    ``password`` is always plaintext at this point and is hashed before it
    is stored; callers never pass a pre-hashed value.
    """
    update_data = changes.model_dump(exclude_unset=True)
    update_data = {k: v for k, v in update_data.items() if k in _UPDATABLE_FIELDS}

    # email / username are NOT NULL; an explicit null leaves them unchanged.
    for field in ("email", "username", "password"):
        if field in update_data and update_data[field] is None:
            del update_data[field]

    await _ensure_unique(
        db,
        update_data.get("email"),
        update_data.get("username"),
        exclude_id=user.id,
    )

    if "password" in update_data:
        update_data["password"] = hash_password(update_data["password"])

    for field, value in update_data.items():
        setattr(user, field, value)

    await _flush_unique(db)
    return user


async def is_following(db: AsyncSession, user: User, followee_id: uuid.UUID) -> bool:
    return await follow_service.exists(db, user.id, followee_id)


async def follow(db: AsyncSession, user: User, target_username: str) -> Profile:
    """Make *user* follow *target_username* and return the target's profile."""
    target = await find_by_username(db, target_username)
    await follow_service.create_follow(db, user.id, target.id)
    logger.info("User %s followed %s", user.id, target.id)
    return to_profile(target, following=True)


async def unfollow(db: AsyncSession, user: User, target_username: str) -> Profile:
    target = await find_by_username(db, target_username)
    await follow_service.delete_follow(db, user.id, target.id)
    logger.info("User %s unfollowed %s", user.id, target.id)
    return to_profile(target, following=False)


async def get_profile(db: AsyncSession, username: str, viewer: User | None = None) -> Profile:
    """Return the profile for *username*; ``following`` is False for anonymous viewers."""
    target = await find_by_username(db, username)
    following = False
    if viewer is not None:
        following = await is_following(db, viewer, target.id)
    return to_profile(target, following=following)
