"""
Article service: business logic for the Article aggregate.

Design notes
------------
- Eager loading via ``joinedload`` (many-to-one: author) and
  ``selectinload`` (many-to-many: tags) is used throughout to eliminate
  N+1 queries.  The tags of a whole page come back in one second query
  and SQLAlchemy groups them onto their owning article.  ``unique()`` is
  required after any query that uses ``joinedload``.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer, which makes
  article + tag creation atomic.
- Update and delete are restricted to the article's author.
"""
import logging
import re
import uuid

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from conduit.config import settings
from conduit.exceptions import ForbiddenError, NotFoundError
from conduit.models import Article, Tag, User
from conduit.schemas import NewArticle, UpdateArticle

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

# Unicode-aware: accented and non-Latin letters are kept.
_SLUG_SEPARATOR_RE = re.compile(r"[\W_]+")

_UPDATABLE_FIELDS = ("title", "description", "body")


def slugify(title: str) -> str:
    """
    Return the URL-safe slug for *title*: lower-cased, every run of
    non-alphanumeric characters replaced by a single ``-``, no leading or
    trailing ``-``.  ``slugify(slugify(t)) == slugify(t)``.
    """
    return _SLUG_SEPARATOR_RE.sub("-", title.lower()).strip("-")


def _with_relations(q):
    return q.options(joinedload(Article.author), selectinload(Article.tags))


def _check_owner(article: Article, actor: User) -> None:
    if article.author_id != actor.id:
        raise ForbiddenError(
            context={"article_id": str(article.id), "actor_id": str(actor.id)}
        )


# ---------------------------------------------------------------------------
# Tag resolution helper (used by create)
# ---------------------------------------------------------------------------

async def _resolve_tags(db: AsyncSession, tag_names: list[str]) -> list[Tag]:
    """
    Return Tag ORM instances for each distinct name in *tag_names* (first
    occurrence order), creating any that do not yet exist.  All inserts
    are flushed within the caller's transaction.
    """
    names = list(dict.fromkeys(n.strip() for n in tag_names if n and n.strip()))
    if not names:
        return []

    result = await db.execute(select(Tag).where(Tag.name.in_(names)))
    existing = {tag.name: tag for tag in result.scalars().all()}

    tags: list[Tag] = []
    for name in names:
        tag = existing.get(name)
        if tag is None:
            tag = Tag(name=name)
            db.add(tag)
        tags.append(tag)
    await db.flush()
    return tags


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def list_articles(
    db: AsyncSession,
    offset: int = 0,
    limit: int = 20,
) -> tuple[list[Article], int]:
    """
    Return one page of articles (newest first) and the total row count.

    Three SQL statements are issued:
    1. COUNT over all articles, independent of the page window.
    2. SELECT with LIMIT/OFFSET and the author JOIN.
    3. SELECT of the page's tags through the association table.
    """
    limit = max(0, min(limit, settings.MAX_PAGE_SIZE))
    offset = max(0, offset)

    total: int = (await db.execute(select(func.count()).select_from(Article))).scalar_one()

    q = _with_relations(
        select(Article)
        .order_by(Article.created_at.desc(), Article.id)
        .offset(offset)
        .limit(limit)
    )
    result = await db.execute(q)
    return list(result.unique().scalars().all()), total


async def get_article(db: AsyncSession, article_id: uuid.UUID) -> Article:
    q = _with_relations(select(Article).where(Article.id == article_id))
    result = await db.execute(q)
    article = result.unique().scalar_one_or_none()
    if article is None:
        raise NotFoundError("article", lookup=str(article_id))
    return article


async def create_article(
    db: AsyncSession,
    author: User,
    data: NewArticle,
    tag_names: list[str] | None = None,
) -> tuple[Article, list[Tag]]:
    """
    Create an article owned by *author* and attach *tag_names*, creating
    tag rows as needed.  Returns the article and its resolved tags.
    """
    if tag_names is None:
        tag_names = data.tag_list
    # Same order the tags relationship loads with.
    tags = sorted(await _resolve_tags(db, tag_names), key=lambda t: t.name)

    article = Article(
        title=data.title,
        slug=slugify(data.title),
        description=data.description,
        body=data.body,
        author_id=author.id,
    )
    article.author = author
    article.tags.extend(tags)

    db.add(article)
    await db.flush()

    logger.info("Article created: id=%s author=%s tags=%d", article.id, author.id, len(tags))
    return article, tags


async def update_article(
    db: AsyncSession,
    article_id: uuid.UUID,
    changes: UpdateArticle,
    actor: User,
) -> Article:
    """
    Partially update an article and return it.

    Only fields explicitly set in the payload are modified; a new title
    also regenerates the slug.
    """
    article = await get_article(db, article_id)
    _check_owner(article, actor)

    update_data = {
        field: value
        for field, value in changes.model_dump(exclude_unset=True).items()
        if field in _UPDATABLE_FIELDS and value is not None
    }
    for field, value in update_data.items():
        setattr(article, field, value)

    if "title" in update_data:
        article.slug = slugify(update_data["title"])

    await db.flush()
    logger.info("Article updated: id=%s fields=%s", article.id, sorted(update_data))
    return article


async def delete_article(db: AsyncSession, article_id: uuid.UUID, actor: User) -> None:
    """
    Delete the article identified by *article_id*.

    Tag associations are removed by the ``ON DELETE CASCADE`` on
    ``article_tags``; the tags themselves stay.
    """
    result = await db.execute(select(Article.author_id).where(Article.id == article_id))
    author_id = result.scalar_one_or_none()
    if author_id is None:
        raise NotFoundError("article", lookup=str(article_id))
    if author_id != actor.id:
        raise ForbiddenError(
            context={"article_id": str(article_id), "actor_id": str(actor.id)}
        )

    await db.execute(delete(Article).where(Article.id == article_id))
    logger.info("Article deleted: id=%s", article_id)


async def list_tags(db: AsyncSession) -> list[str]:
    result = await db.execute(select(Tag.name).order_by(Tag.name))
    return list(result.scalars().all())
