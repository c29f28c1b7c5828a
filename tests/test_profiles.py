"""
Profile endpoint tests: viewing profiles and following / unfollowing.
"""
import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_get_profile_anonymous(async_client: AsyncClient, register):
    await register("celebrity")
    resp = await async_client.get("/api/profiles/celebrity")
    assert resp.status_code == 200
    assert resp.json() == {
        "profile": {"username": "celebrity", "bio": None, "image": None, "following": False},
    }


@pytest.mark.asyncio
async def test_get_unknown_profile(async_client: AsyncClient):
    resp = await async_client.get("/api/profiles/nobody")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_follow_and_unfollow(async_client: AsyncClient, register):
    """Follow flips ``following`` on; unfollow flips it off again."""
    await register("star")
    _, headers = await register("follower")

    resp = await async_client.post("/api/profiles/star/follow", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["profile"]["username"] == "star"
    assert resp.json()["profile"]["following"] is True

    resp = await async_client.get("/api/profiles/star", headers=headers)
    assert resp.json()["profile"]["following"] is True

    resp = await async_client.delete("/api/profiles/star/follow", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["profile"]["following"] is False

    resp = await async_client.get("/api/profiles/star", headers=headers)
    assert resp.json()["profile"]["following"] is False


@pytest.mark.asyncio
async def test_follow_twice_is_idempotent(async_client: AsyncClient, register):
    await register("popular")
    _, headers = await register("eager")

    first = await async_client.post("/api/profiles/popular/follow", headers=headers)
    second = await async_client.post("/api/profiles/popular/follow", headers=headers)
    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["profile"]["following"] is True


@pytest.mark.asyncio
async def test_unfollow_when_not_following(async_client: AsyncClient, register):
    await register("stranger")
    _, headers = await register("shy")

    resp = await async_client.delete("/api/profiles/stranger/follow", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["profile"]["following"] is False


@pytest.mark.asyncio
async def test_follow_unknown_user(async_client: AsyncClient, register):
    _, headers = await register("lonely")
    resp = await async_client.post("/api/profiles/ghost/follow", headers=headers)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_follow_requires_auth(async_client: AsyncClient, register):
    await register("target")
    resp = await async_client.post("/api/profiles/target/follow")
    assert resp.status_code == 401
