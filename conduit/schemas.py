import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# bcrypt only looks at the first 72 bytes and newer releases refuse more.
PASSWORD_MAX_BYTES = 72


def _check_password_bytes(value: str | None) -> str | None:
    if value is not None and len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"password must be at most {PASSWORD_MAX_BYTES} bytes when UTF-8 encoded")
    return value


class CamelModel(BaseModel):
    """Wire models use camelCase keys (``tagList``, ``createdAt``)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- User ---

class NewUser(BaseModel):
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value):
        return _check_password_bytes(value)


class NewUserRequest(BaseModel):
    user: NewUser


class LoginUser(BaseModel):
    email: str
    password: str


class LoginUserRequest(BaseModel):
    user: LoginUser


class UpdateUser(BaseModel):
    # Password is always plaintext here; the user store hashes it.
    email: str | None = Field(None, min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    username: str | None = Field(None, min_length=1, max_length=100)
    password: str | None = Field(None, min_length=1)
    image: str | None = Field(None, max_length=500)
    bio: str | None = None

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value):
        return _check_password_bytes(value)


class UpdateUserRequest(BaseModel):
    user: UpdateUser


class UserWithToken(BaseModel):
    email: str
    token: str
    username: str
    bio: str | None = None
    image: str | None = None


class UserResponse(BaseModel):
    user: UserWithToken


# --- Profile ---

class Profile(BaseModel):
    username: str
    bio: str | None = None
    image: str | None = None
    following: bool = False


class ProfileResponse(BaseModel):
    profile: Profile


# --- Article ---

class NewArticle(CamelModel):
    title: str = Field(min_length=1, max_length=300)
    description: str = ""
    body: str
    tag_list: list[str] = []


class CreateArticleRequest(BaseModel):
    article: NewArticle


class UpdateArticle(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=300)
    description: str | None = None
    body: str | None = None


class UpdateArticleRequest(BaseModel):
    article: UpdateArticle


class ArticleOut(CamelModel):
    id: uuid.UUID
    slug: str
    title: str
    description: str
    body: str
    tag_list: list[str] = []
    created_at: datetime
    updated_at: datetime
    author: Profile


class SingleArticleResponse(BaseModel):
    article: ArticleOut


class MultipleArticlesResponse(CamelModel):
    articles: list[ArticleOut]
    articles_count: int


# --- Tags ---

class TagsResponse(BaseModel):
    tags: list[str]
