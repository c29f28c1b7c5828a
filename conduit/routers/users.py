from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from conduit.database import get_db
from conduit.dependencies import access_auth_user
from conduit.models import User
from conduit.schemas import (
    LoginUserRequest,
    NewUserRequest,
    UpdateUserRequest,
    UserResponse,
    UserWithToken,
)
from conduit.services import user_service

router = APIRouter(prefix="/api", tags=["users"])


def _user_response(user: User, token: str) -> UserResponse:
    return UserResponse(
        user=UserWithToken(
            email=user.email,
            token=token,
            username=user.username,
            bio=user.bio,
            image=user.image,
        )
    )


@router.post("/users", status_code=201, response_model=UserResponse)
async def signup(data: NewUserRequest, db: AsyncSession = Depends(get_db)):
    user, token = await user_service.signup(
        db, data.user.email, data.user.username, data.user.password
    )
    return _user_response(user, token)


@router.post("/users/login", response_model=UserResponse)
async def signin(data: LoginUserRequest, db: AsyncSession = Depends(get_db)):
    user, token = await user_service.signin(db, data.user.email, data.user.password)
    return _user_response(user, token)


@router.get("/user", response_model=UserResponse)
async def current_user(user: User = Depends(access_auth_user)):
    return _user_response(user, user_service.generate_token(user))


@router.put("/user", response_model=UserResponse)
async def update_user(
    data: UpdateUserRequest,
    user: User = Depends(access_auth_user),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.update(db, user, data.user)
    return _user_response(user, user_service.generate_token(user))
