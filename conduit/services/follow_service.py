"""
Follow service: the many-to-many "follower follows followee" relation.

Rows are keyed by the ordered pair, so creation is an idempotent
``INSERT ... ON CONFLICT DO NOTHING``: a repeated or concurrent follow of
the same pair leaves exactly one row instead of racing into a unique
violation.
"""
import uuid
from collections.abc import Iterable

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.exceptions import ConstraintViolationError, UnsupportedDatabaseError
from conduit.models import Follow, utcnow

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


async def create_follow(db: AsyncSession, follower_id: uuid.UUID, followee_id: uuid.UUID) -> None:
    """Record that *follower_id* follows *followee_id*; no-op if it already does."""
    dialect = db.get_bind().dialect.name
    insert = _UPSERT_DIALECTS.get(dialect)
    if insert is None:
        raise UnsupportedDatabaseError(dialect)

    now = utcnow()
    stmt = (
        insert(Follow)
        .values(follower_id=follower_id, followee_id=followee_id, created_at=now, updated_at=now)
        .on_conflict_do_nothing(index_elements=["follower_id", "followee_id"])
    )
    try:
        await db.execute(stmt)
    except IntegrityError as exc:
        # Only a foreign-key failure can get here: one of the users is gone.
        raise ConstraintViolationError(
            "cannot follow a user that does not exist",
            context={"follower_id": str(follower_id), "followee_id": str(followee_id)},
        ) from exc


async def delete_follow(db: AsyncSession, follower_id: uuid.UUID, followee_id: uuid.UUID) -> None:
    """Remove the follow row for the pair; nothing happens if there is none."""
    await db.execute(
        delete(Follow).where(
            Follow.follower_id == follower_id,
            Follow.followee_id == followee_id,
        )
    )


async def exists(db: AsyncSession, follower_id: uuid.UUID, followee_id: uuid.UUID) -> bool:
    result = await db.execute(
        select(Follow.follower_id).where(
            Follow.follower_id == follower_id,
            Follow.followee_id == followee_id,
        )
    )
    return result.first() is not None


async def following_ids(
    db: AsyncSession, follower_id: uuid.UUID, followee_ids: Iterable[uuid.UUID]
) -> set[uuid.UUID]:
    """
    Return the subset of *followee_ids* that *follower_id* follows.

    Used to fill the ``following`` flag for a whole page of article
    authors with one query.
    """
    ids = set(followee_ids)
    if not ids:
        return set()
    result = await db.execute(
        select(Follow.followee_id).where(
            Follow.follower_id == follower_id,
            Follow.followee_id.in_(ids),
        )
    )
    return set(result.scalars().all())
