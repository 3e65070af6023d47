import pytest

from fmbot.storage import Crown, LinkedUser, Storage


@pytest.fixture
async def storage(tmp_path):
    store = Storage(str(tmp_path / "nested" / "fmbot.db"))
    await store.initialize()
    return store


@pytest.mark.anyio
async def test_link_and_get(storage) -> None:
    await storage.link_user(10, "rj", "sk-1")
    assert await storage.get_user(10) == LinkedUser("rj", "sk-1")
    assert await storage.get_user("10") == LinkedUser("rj", "sk-1")
    assert await storage.get_user(11) is None


@pytest.mark.anyio
async def test_relink_replaces_session(storage) -> None:
    await storage.link_user(10, "rj", "sk-1")
    await storage.link_user(10, "rj2", "sk-2")
    assert await storage.get_user(10) == LinkedUser("rj2", "sk-2")
    assert await storage.linked_user_ids() == ["10"]


@pytest.mark.anyio
async def test_unlink_reports_removal(storage) -> None:
    await storage.link_user(10, "rj", "sk-1")
    assert await storage.unlink_user(10) is True
    assert await storage.unlink_user(10) is False
    assert await storage.get_user(10) is None


@pytest.mark.anyio
async def test_initialize_is_repeatable(storage) -> None:
    await storage.link_user(10, "rj", "sk-1")
    await storage.initialize()
    assert await storage.get_user(10) == LinkedUser("rj", "sk-1")


@pytest.mark.anyio
async def test_crowns_ignore_artist_case(storage) -> None:
    await storage.set_crown(1, "  Drake ", 10, 50)
    assert await storage.get_crown(1, "DRAKE") == Crown("10", 50)
    assert await storage.get_crown(2, "drake") is None


@pytest.mark.anyio
async def test_crowns_for_holder(storage) -> None:
    await storage.set_crown(1, "Drake", 10, 50)
    await storage.set_crown(1, "Queen", 10, 120)
    await storage.set_crown(1, "ABBA", 11, 300)
    await storage.set_crown(2, "Muse", 10, 999)
    assert await storage.crowns_for(1, 10) == [("queen", 120), ("drake", 50)]
