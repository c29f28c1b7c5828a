from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import get_db
from conduit.dependencies import access_auth_user, optional_auth_user
from conduit.models import User
from conduit.schemas import ProfileResponse
from conduit.services import user_service

router = APIRouter(prefix="/api/profiles", tags=["profiles"])


@router.get("/{username}", response_model=ProfileResponse)
async def get_profile(
    username: str,
    viewer: User | None = Depends(optional_auth_user),
    db: AsyncSession = Depends(get_db),
):
    return ProfileResponse(profile=await user_service.get_profile(db, username, viewer))


@router.post("/{username}/follow", response_model=ProfileResponse)
async def follow_user(
    username: str,
    user: User = Depends(access_auth_user),
    db: AsyncSession = Depends(get_db),
):
    return ProfileResponse(profile=await user_service.follow(db, user, username))


@router.delete("/{username}/follow", response_model=ProfileResponse)
async def unfollow_user(
    username: str,
    user: User = Depends(access_auth_user),
    db: AsyncSession = Depends(get_db),
):
    return ProfileResponse(profile=await user_service.unfollow(db, user, username))
