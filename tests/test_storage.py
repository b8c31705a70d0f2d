import json

import pytest

from ibarize.services.storage import DRAFT_KEY, FAVORITES_KEY, DraftStore, FavoritesStore, LocalStore, SessionStore

@pytest.mark.asyncio
async def test_favorite_toggle_twice_restores_the_list(store):
    favorites = FavoritesStore(store)
    await favorites.toggle("1")
    before = await favorites.get()
    await favorites.toggle("2")
    await favorites.toggle("2")
    assert await favorites.get() == before == ["1"]

@pytest.mark.asyncio
async def test_favorites_survive_a_reload(fake_redis):
    await FavoritesStore(LocalStore(fake_redis)).toggle("3")
    assert json.loads(fake_redis.data[FAVORITES_KEY]) == ["3"]
    reloaded = FavoritesStore(LocalStore(fake_redis))
    assert await reloaded.get() == ["3"]
    assert await reloaded.contains("3")

@pytest.mark.asyncio
async def test_unreadable_favorites_are_treated_as_empty(fake_redis):
    fake_redis.data[FAVORITES_KEY] = "{not json"
    assert await FavoritesStore(LocalStore(fake_redis)).get() == []

@pytest.mark.asyncio
async def test_draft_writes_on_every_field_change(fake_redis, store):
    drafts = DraftStore(store)
    assert await drafts.load() is None
    await drafts.update_field("title", "Garden Villa")
    assert json.loads(fake_redis.data[DRAFT_KEY])["title"] == "Garden Villa"
    await drafts.update_field("price", "250000")
    saved = json.loads(fake_redis.data[DRAFT_KEY])
    assert saved["title"] == "Garden Villa"
    assert saved["price"] == "250000"
    assert saved["type"] == "apartment"

@pytest.mark.asyncio
async def test_draft_clear_removes_it(fake_redis, store):
    drafts = DraftStore(store)
    await drafts.save({"title": "x"})
    await drafts.clear()
    assert DRAFT_KEY not in fake_redis.data
    assert await drafts.load() is None

@pytest.mark.asyncio
async def test_session_flags(fake_redis, store):
    session = SessionStore(store)
    assert not await session.is_authenticated()
    await session.login()
    assert fake_redis.data == {"isAuthenticated": "true", "userRole": "broker"}
    assert await session.is_authenticated()
    await session.logout()
    assert fake_redis.data == {}
