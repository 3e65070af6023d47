import hashlib
from unittest.mock import AsyncMock

import aiohttp
import pytest

from fmbot.lastfm import (
    LastFMAPI,
    LastFMError,
    format_period,
    is_placeholder,
    largest_image,
    sign,
    to_int,
)

STAR = "https://lastfm.freetls.fastly.net/i/u/300x300/2a96cbd8b46e442fc41c2b86b821562f.png"


def test_sign_sorts_params_and_appends_secret() -> None:
    params = {"token": "T", "method": "auth.getSession", "api_key": "K"}
    expected = hashlib.md5(b"api_keyKmethodauth.getSessiontokenTsecret").hexdigest()
    assert sign(params, "secret") == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("week", "7day"),
        ("w", "7day"),
        ("Month", "1month"),
        ("quarter", "3month"),
        ("half", "6month"),
        ("year", "12month"),
        ("12month", "12month"),
        ("alltime", "overall"),
        ("", "overall"),
        (None, "overall"),
    ],
)
def test_format_period(raw, expected) -> None:
    assert format_period(raw) == expected


def test_to_int() -> None:
    assert to_int("12") == 12
    assert to_int(None) == 0
    assert to_int("n/a") == 0


def test_largest_image_prefers_extralarge() -> None:
    images = [
        {"size": "small", "#text": "s.png"},
        {"size": "extralarge", "#text": "xl.png"},
        {"size": "large", "#text": "l.png"},
    ]
    assert largest_image(images) == "xl.png"


def test_largest_image_skips_empty_urls() -> None:
    images = [{"size": "extralarge", "#text": ""}, {"size": "medium", "#text": "m.png"}]
    assert largest_image(images) == "m.png"
    assert largest_image([]) is None
    assert largest_image("nope") is None


def test_is_placeholder() -> None:
    assert is_placeholder(STAR)
    assert is_placeholder(None)
    assert not is_placeholder("https://i.scdn.co/image/cover")


def make_api(*responses) -> LastFMAPI:
    api = LastFMAPI("key", "secret")
    api._get = AsyncMock(side_effect=list(responses))
    return api


class TestMakeRequest:
    @pytest.mark.anyio
    async def test_adds_common_params(self) -> None:
        api = make_api((200, {"ok": True}))
        assert await api.make_request("user.getInfo", {"user": "rj"}) == {"ok": True}
        params = api._get.await_args.args[0]
        assert params == {"user": "rj", "method": "user.getInfo", "api_key": "key", "format": "json"}

    @pytest.mark.anyio
    async def test_error_payload_is_none(self) -> None:
        api = make_api((200, {"error": 6, "message": "User not found"}))
        assert await api.make_request("user.getInfo") is None

    @pytest.mark.anyio
    async def test_transport_error_is_none(self) -> None:
        api = make_api(aiohttp.ClientError("reset"))
        assert await api.make_request("user.getInfo") is None


class TestRecentTrack:
    @pytest.mark.anyio
    async def test_flattens_now_playing(self) -> None:
        payload = {
            "recenttracks": {
                "track": [{
                    "artist": {"#text": "Queen"},
                    "name": "Bohemian Rhapsody",
                    "album": {"#text": "A Night at the Opera"},
                    "image": [{"size": "extralarge", "#text": "cover.png"}],
                    "url": "https://www.last.fm/music/Queen/_/Bohemian+Rhapsody",
                    "@attr": {"nowplaying": "true"},
                }]
            }
        }
        api = make_api((200, payload))
        track = await api.get_recent_track("rj", "sk")
        assert track["artist"] == "Queen"
        assert track["track"] == "Bohemian Rhapsody"
        assert track["album"] == "A Night at the Opera"
        assert track["image"] == "cover.png"
        assert track["now_playing"] is True
        assert track["uts"] == 0
        assert api._get.await_args.args[0]["sk"] == "sk"

    @pytest.mark.anyio
    async def test_single_track_object(self) -> None:
        payload = {"recenttracks": {"track": {"name": "Song", "date": {"uts": "1700000000"}}}}
        track = await make_api((200, payload)).get_recent_track("rj")
        assert track["track"] == "Song"
        assert track["artist"] == "Unknown Artist"
        assert track["now_playing"] is False
        assert track["uts"] == 1700000000

    @pytest.mark.anyio
    async def test_no_tracks(self) -> None:
        api = make_api((200, {"recenttracks": {"track": []}}))
        assert await api.get_recent_track("rj") is None


class TestPlaycount:
    @pytest.mark.anyio
    async def test_artist_playcount(self) -> None:
        api = make_api((200, {"artist": {"stats": {"userplaycount": "42"}}}))
        assert await api.get_user_playcount("artist", "rj", "Queen") == 42
        assert api._get.await_args.args[0]["method"] == "artist.getInfo"

    @pytest.mark.anyio
    async def test_track_prefers_scrobble_log(self) -> None:
        api = make_api((200, {"trackscrobbles": {"@attr": {"total": "7"}}}))
        assert await api.get_user_playcount("track", "rj", "Queen", track="Bohemian Rhapsody") == 7
        assert api._get.await_count == 1

    @pytest.mark.anyio
    async def test_track_falls_back_to_info(self) -> None:
        api = make_api(
            (200, {"trackscrobbles": {"@attr": {"total": "0"}}}),
            (200, {"track": {"userplaycount": "3"}}),
        )
        assert await api.get_user_playcount("track", "rj", "Queen", track="Bohemian Rhapsody") == 3
        assert api._get.await_args.args[0]["method"] == "track.getInfo"

    @pytest.mark.anyio
    async def test_failure_is_zero(self) -> None:
        api = make_api((500, {"error": 8, "message": "Operation failed"}))
        assert await api.get_user_playcount("album", "rj", "Queen", album="Jazz") == 0


class TestAuth:
    def test_auth_url(self) -> None:
        assert LastFMAPI("key").auth_url("tok") == "https://www.last.fm/api/auth/?api_key=key&token=tok"

    @pytest.mark.anyio
    async def test_get_token(self) -> None:
        assert await make_api((200, {"token": "tok"})).get_token() == "tok"

    @pytest.mark.anyio
    async def test_get_session_signs_request(self) -> None:
        api = make_api((200, {"session": {"name": "rj", "key": "sk"}}))
        assert await api.get_session("tok") == {"name": "rj", "key": "sk"}
        params = api._get.await_args.args[0]
        unsigned = {"api_key": "key", "method": "auth.getSession", "token": "tok"}
        assert params["api_sig"] == sign(unsigned, "secret")
        assert params["format"] == "json"

    @pytest.mark.anyio
    async def test_get_session_raises_lastfm_error(self) -> None:
        api = make_api((403, {"error": 14, "message": "Unauthorized Token"}))
        with pytest.raises(LastFMError) as info:
            await api.get_session("tok")
        assert info.value.code == 14
        assert info.value.message == "Unauthorized Token"
