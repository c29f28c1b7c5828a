import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import get_db
from conduit.dependencies import PaginationParams, access_auth_user, optional_auth_user
from conduit.models import Article, User
from conduit.schemas import (
    ArticleOut,
    CreateArticleRequest,
    MultipleArticlesResponse,
    SingleArticleResponse,
    UpdateArticleRequest,
)
from conduit.services import article_service, follow_service, user_service

router = APIRouter(prefix="/api/articles", tags=["articles"])


def _article_out(article: Article, following: bool, tags=None) -> ArticleOut:
    tags = article.tags if tags is None else tags
    return ArticleOut(
        id=article.id,
        slug=article.slug,
        title=article.title,
        description=article.description,
        body=article.body,
        tag_list=[t.name for t in tags],
        created_at=article.created_at,
        updated_at=article.updated_at,
        author=user_service.to_profile(article.author, following=following),
    )


async def _single(db: AsyncSession, article: Article, viewer: User | None, tags=None):
    following = False
    if viewer is not None:
        following = await user_service.is_following(db, viewer, article.author_id)
    return SingleArticleResponse(article=_article_out(article, following, tags))


@router.get("", response_model=MultipleArticlesResponse)
async def list_articles(
    pagination: PaginationParams = Depends(),
    viewer: User | None = Depends(optional_auth_user),
    db: AsyncSession = Depends(get_db),
):
    articles, total = await article_service.list_articles(db, pagination.offset, pagination.limit)

    followed: set[uuid.UUID] = set()
    if viewer is not None:
        followed = await follow_service.following_ids(db, viewer.id, {a.author_id for a in articles})

    return MultipleArticlesResponse(
        articles=[_article_out(a, a.author_id in followed) for a in articles],
        articles_count=total,
    )


@router.post("", status_code=201, response_model=SingleArticleResponse)
async def create_article(
    data: CreateArticleRequest,
    user: User = Depends(access_auth_user),
    db: AsyncSession = Depends(get_db),
):
    article, tags = await article_service.create_article(
        db, user, data.article, data.article.tag_list
    )
    return await _single(db, article, user, tags)


@router.get("/{article_id}", response_model=SingleArticleResponse)
async def get_article(
    article_id: uuid.UUID,
    viewer: User | None = Depends(optional_auth_user),
    db: AsyncSession = Depends(get_db),
):
    article = await article_service.get_article(db, article_id)
    return await _single(db, article, viewer)


@router.put("/{article_id}", response_model=SingleArticleResponse)
async def update_article(
    article_id: uuid.UUID,
    data: UpdateArticleRequest,
    user: User = Depends(access_auth_user),
    db: AsyncSession = Depends(get_db),
):
    article = await article_service.update_article(db, article_id, data.article, user)
    return await _single(db, article, user)


@router.delete("/{article_id}", status_code=204)
async def delete_article(
    article_id: uuid.UUID,
    user: User = Depends(access_auth_user),
    db: AsyncSession = Depends(get_db),
):
    await article_service.delete_article(db, article_id, user)
    return Response(status_code=204)
