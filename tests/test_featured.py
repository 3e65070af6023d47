from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from fmbot.config import Settings
from fmbot.events import featured
from fmbot.events.featured import MAX_TRIES, FeaturedTrack
from fmbot.storage import Storage
from tests.fakes import FakeChannel

PLACEHOLDER = "https://lastfm.freetls.fastly.net/i/u/300x300/2a96cbd8b46e442fc41c2b86b821562f.png"


def top_tracks(image=PLACEHOLDER):
    return {"toptracks": {"track": [{
        "name": "Bohemian Rhapsody",
        "artist": {"name": "Queen"},
        "image": [{"size": "extralarge", "#text": image}],
    }]}}


@pytest.fixture
async def storage(tmp_path):
    store = Storage(str(tmp_path / "fmbot.db"))
    await store.initialize()
    return store


@pytest.fixture(autouse=True)
def first_choice(monkeypatch):
    monkeypatch.setattr(featured, "random", SimpleNamespace(choice=lambda seq: seq[0]))


def make_bot(storage=None, channel_id=1234, channel=None):
    lastfm = MagicMock()
    lastfm.get_top_tracks = AsyncMock(return_value=top_tracks())
    spotify = MagicMock()
    spotify.get_image = AsyncMock(return_value="https://i.scdn.co/image/cover")
    return SimpleNamespace(
        settings=Settings(feature_channel_id=channel_id),
        storage=storage,
        lastfm=lastfm,
        spotify=spotify,
        get_channel=MagicMock(return_value=channel),
        user=SimpleNamespace(edit=AsyncMock()),
    )


class TestPickTrack:
    @pytest.mark.anyio
    async def test_no_linked_users(self, storage) -> None:
        bot = make_bot(storage)
        assert await FeaturedTrack(bot).pick_track() is None
        bot.lastfm.get_top_tracks.assert_not_awaited()

    @pytest.mark.anyio
    async def test_spotify_image_is_preferred(self, storage) -> None:
        await storage.link_user(10, "rj", "sk")
        bot = make_bot(storage)
        picked = await FeaturedTrack(bot).pick_track()
        assert picked == (
            "rj",
            "7day",
            {"artist": "Queen", "track": "Bohemian Rhapsody"},
            "https://i.scdn.co/image/cover",
        )
        bot.lastfm.get_top_tracks.assert_awaited_once_with("rj", "7day", limit=50)

    @pytest.mark.anyio
    async def test_placeholder_image_means_another_try(self, storage) -> None:
        await storage.link_user(10, "rj", "sk")
        bot = make_bot(storage)
        bot.spotify.get_image.side_effect = [None, "https://i.scdn.co/image/second"]
        picked = await FeaturedTrack(bot).pick_track()
        assert picked[3] == "https://i.scdn.co/image/second"
        assert bot.lastfm.get_top_tracks.await_count == 2

    @pytest.mark.anyio
    async def test_lastfm_cover_used_without_spotify(self, storage) -> None:
        await storage.link_user(10, "rj", "sk")
        bot = make_bot(storage)
        bot.spotify.get_image.return_value = None
        bot.lastfm.get_top_tracks.return_value = top_tracks("https://lastfm/real-cover.png")
        picked = await FeaturedTrack(bot).pick_track()
        assert picked[3] == "https://lastfm/real-cover.png"

    @pytest.mark.anyio
    async def test_gives_up_after_max_tries(self, storage) -> None:
        await storage.link_user(10, "rj", "sk")
        bot = make_bot(storage)
        bot.lastfm.get_top_tracks.return_value = {"toptracks": {"track": []}}
        assert await FeaturedTrack(bot).pick_track() is None
        assert bot.lastfm.get_top_tracks.await_count == MAX_TRIES


class TestPostFeaturedTrack:
    @pytest.mark.anyio
    async def test_sends_embed_to_channel(self) -> None:
        channel = FakeChannel()
        bot = make_bot(channel=channel)
        cog = FeaturedTrack(bot)
        cog.pick_track = AsyncMock(return_value=(
            "rj", "1month", {"artist": "Queen", "track": "Bohemian Rhapsody"}, "https://img/cover.png"
        ))
        cog.set_avatar = AsyncMock()

        await cog.post_featured_track()

        cog.set_avatar.assert_awaited_once_with("https://img/cover.png")
        bot.get_channel.assert_called_once_with(1234)
        embed = channel.send.await_args.kwargs["embed"]
        assert embed.thumbnail.url == "https://img/cover.png"
        assert "Random monthly pick from rj" in embed.fields[0].value

    @pytest.mark.anyio
    async def test_missing_channel_is_logged_not_raised(self) -> None:
        bot = make_bot(channel=None)
        cog = FeaturedTrack(bot)
        cog.pick_track = AsyncMock(return_value=(
            "rj", "7day", {"artist": "Queen", "track": "Bohemian Rhapsody"}, "https://img/cover.png"
        ))
        cog.set_avatar = AsyncMock()

        await cog.post_featured_track()

        bot.get_channel.assert_called_once_with(1234)

    @pytest.mark.anyio
    async def test_nothing_picked_sends_nothing(self) -> None:
        channel = FakeChannel()
        bot = make_bot(channel=channel)
        cog = FeaturedTrack(bot)
        cog.pick_track = AsyncMock(return_value=None)
        cog.set_avatar = AsyncMock()

        await cog.post_featured_track()

        cog.set_avatar.assert_not_awaited()
        channel.send.assert_not_awaited()


class TestCogLoad:
    @pytest.mark.anyio
    async def test_unset_channel_leaves_loop_stopped(self) -> None:
        cog = FeaturedTrack(make_bot(channel_id=None))
        await cog.cog_load()
        assert not cog.feature_loop.is_running()
