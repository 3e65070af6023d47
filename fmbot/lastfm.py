import hashlib
import logging

import aiohttp

logger = logging.getLogger('bot')

BASE_URL = "https://ws.audioscrobbler.com/2.0/"
AUTH_URL = "https://www.last.fm/api/auth/"

# Last.fm serves this star image when it has no artwork
PLACEHOLDER_IMAGES = ("2a96cbd8b46e442fc41c2b86b821562f.png",)

PERIOD_NAMES = {
    "7day": "Weekly",
    "1month": "Monthly",
    "3month": "Quarterly",
    "6month": "Half-Yearly",
    "12month": "Yearly",
    "overall": "Overall",
}


class LastFMError(Exception):
    """Error payload returned by the Last.fm API"""

    def __init__(self, code, message):
        super().__init__(f"Last.fm error {code}: {message}")
        self.code = code
        self.message = message


def sign(params, secret):
    """Build an api_sig: md5 of sorted key/value pairs followed by the secret"""
    text = "".join(f"{key}{params[key]}" for key in sorted(params))
    return hashlib.md5((text + secret).encode("utf-8")).hexdigest()


def to_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def format_period(period):
    """Format a time period string to a Last.fm API period string"""
    period = (period or "").lower()

    if period in ["day", "1day", "24h", "24hours", "week", "7day", "7days", "weekly", "w"]:
        return "7day"
    elif period in ["month", "1month", "30days", "30day", "monthly", "m"]:
        return "1month"
    elif period in ["3month", "3months", "90days", "90day", "quarter", "q"]:
        return "3month"
    elif period in ["6month", "6months", "180days", "180day", "half"]:
        return "6month"
    elif period in ["year", "1year", "12months", "12month", "365days", "365day", "yearly", "y"]:
        return "12month"
    else:
        return "overall"


def is_placeholder(url):
    return not url or any(marker in url for marker in PLACEHOLDER_IMAGES)


def largest_image(images):
    """Get the largest image URL from a list of Last.fm images"""
    if not images or not isinstance(images, list):
        return None

    for size in ["extralarge", "large", "medium", "small"]:
        for image in images:
            if image.get("size") == size and image.get("#text"):
                return image.get("#text")

    return None


class LastFMAPI:
    """Client for the Last.fm API"""

    def __init__(self, api_key, api_secret=None):
        self.api_key = api_key
        self.api_secret = api_secret
        self.headers = {
            "User-Agent": "fmbot/1.0"
        }

    async def _get(self, params):
        async with aiohttp.ClientSession(headers=self.headers) as session:
            async with session.get(BASE_URL, params=params, timeout=aiohttp.ClientTimeout(total=10)) as response:
                return response.status, await response.json(content_type=None)

    async def make_request(self, method, params=None):
        """Make a request to the Last.fm API, returning None on any failure"""
        params = dict(params or {})
        params.update({
            "method": method,
            "api_key": self.api_key,
            "format": "json"
        })

        try:
            status, data = await self._get(params)
        except (aiohttp.ClientError, TimeoutError, ValueError) as e:
            logger.error(f"Error making Last.fm API request {method}: {e}")
            return None

        if status != 200 or not isinstance(data, dict) or "error" in data:
            message = data.get("message") if isinstance(data, dict) else data
            logger.error(f"Last.fm API error for {method}: {status} - {message}")
            return None
        return data

    async def get_recent_track(self, username, session_key=None):
        """Get the user's now playing or most recent track as a flat dict"""
        params = {"user": username, "limit": 1}
        if session_key:
            params["sk"] = session_key
        data = await self.make_request("user.getRecentTracks", params)
        if not data or "recenttracks" not in data:
            return None

        tracks = data["recenttracks"].get("track", [])
        # Last.fm returns a list or a single track if there's only one result
        track = tracks[0] if isinstance(tracks, list) and tracks else tracks
        if not isinstance(track, dict) or not track:
            return None

        return {
            "artist": track.get("artist", {}).get("#text", "Unknown Artist"),
            "track": track.get("name", "Unknown Track"),
            "album": track.get("album", {}).get("#text", ""),
            "image": largest_image(track.get("image", [])),
            "url": track.get("url", ""),
            "now_playing": track.get("@attr", {}).get("nowplaying") == "true",
            "uts": to_int(track.get("date", {}).get("uts")),
        }

    async def get_top_artists(self, username, period="overall", limit=10, page=1):
        """Get a user's top artists"""
        params = {
            "user": username,
            "period": period,
            "limit": limit,
            "page": page
        }
        return await self.make_request("user.getTopArtists", params)

    async def get_top_albums(self, username, period="overall", limit=10):
        """Get a user's top albums"""
        params = {
            "user": username,
            "period": period,
            "limit": limit
        }
        return await self.make_request("user.getTopAlbums", params)

    async def get_top_tracks(self, username, period="overall", limit=10):
        """Get a user's top tracks"""
        params = {
            "user": username,
            "period": period,
            "limit": limit
        }
        return await self.make_request("user.getTopTracks", params)

    async def get_artist_info(self, artist, username=None):
        """Get information about an artist"""
        params = {"artist": artist, "autocorrect": 1}
        if username:
            params["username"] = username
        return await self.make_request("artist.getInfo", params)

    async def get_artist_tags(self, artist, limit=2):
        """Get the first few tag names of an artist"""
        data = await self.get_artist_info(artist)
        if not data:
            return []
        tags = data.get("artist", {}).get("tags", {}).get("tag", [])
        if isinstance(tags, dict):
            tags = [tags]
        return [tag.get("name") for tag in tags[:limit] if tag.get("name")]

    async def get_user_playcount(self, kind, username, artist, track=None, album=None, session_key=None):
        """How many times a user played an artist, album or track"""
        base = {"username": username, "artist": artist, "autocorrect": 1}
        if session_key:
            base["sk"] = session_key

        if kind == "track" and track:
            # getInfo undercounts tracks, the scrobble log is more reliable
            data = await self.make_request("user.getTrackScrobbles", {**base, "track": track})
            plays = to_int((data or {}).get("trackscrobbles", {}).get("@attr", {}).get("total"))
            if plays > 0:
                return plays

        params = dict(base)
        if track:
            params["track"] = track
        if album:
            params["album"] = album
        data = await self.make_request(f"{kind}.getInfo", params)
        if not data:
            return 0
        if kind == "artist":
            return to_int(data.get("artist", {}).get("stats", {}).get("userplaycount"))
        return to_int(data.get(kind, {}).get("userplaycount"))

    async def get_token(self):
        """Request an unauthorised token for the web auth flow"""
        data = await self.make_request("auth.getToken")
        return data.get("token") if data else None

    def auth_url(self, token):
        return f"{AUTH_URL}?api_key={self.api_key}&token={token}"

    async def get_session(self, token):
        """Exchange an authorised token for a session.

        Returns the session dict (``name``, ``key``) and raises LastFMError
        when Last.fm answers with an error code.
        """
        params = {
            "api_key": self.api_key,
            "method": "auth.getSession",
            "token": token,
        }
        params["api_sig"] = sign(params, self.api_secret or "")
        params["format"] = "json"

        status, data = await self._get(params)
        if isinstance(data, dict) and "error" in data:
            raise LastFMError(data["error"], data.get("message", "Unknown error"))
        if status != 200 or not isinstance(data, dict) or "session" not in data:
            raise LastFMError(status, "Unexpected response")
        return data["session"]
